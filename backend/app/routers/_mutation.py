from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.services.directory import MutationResult


def mutation_response(result: MutationResult):
    """Row on success; 500 with the re-read row when the commit failed."""
    if result.ok:
        return result.row
    current = result.row.model_dump(by_alias=True) if result.row is not None else None
    return JSONResponse(
        status_code=500,
        content=jsonable_encoder({"error": result.error, "current": current}),
    )
