from fastapi import APIRouter

from vclusterctl.schema import PROVIDER_BLOCKS, RESOURCES, describe

router = APIRouter()

@router.get("/schema")
def get_schema():
    return {
        "resources": {name: describe(table) for name, table in RESOURCES.items()},
        "provider": {name: describe(table) for name, table in PROVIDER_BLOCKS.items()},
    }
