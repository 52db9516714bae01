from fastapi import HTTPException

from pharmasave.core.exceptions import PharmaSaveError


def http_error(exc: PharmaSaveError) -> HTTPException:
    """Turn a domain error into the HTTPException an endpoint raises."""
    if exc.details:
        return HTTPException(status_code=exc.status_code, detail={"message": exc.message, "errors": exc.details})
    return HTTPException(status_code=exc.status_code, detail=exc.message)
