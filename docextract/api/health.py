from fastapi import APIRouter, Depends

from docextract.api.deps import get_schema_store
from docextract.services.schema_store import SchemaStore

router = APIRouter()


@router.get(
    "",
    status_code=200,
    summary="Health check",
    description="Liveness check; also reports how many schemas are stored",
)
def health_check(store: SchemaStore = Depends(get_schema_store)):
    return {"status": "ok", "stored_schemas": len(store.find_all())}
