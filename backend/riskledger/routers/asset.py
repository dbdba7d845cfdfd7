"""
Primary assets: /api/v1/assets

criticality, rto/rpo/mtd and bia_* are kept in step with the asset's BIA.
"""
from fastapi import APIRouter, Depends

from riskledger.database import get_store
from riskledger.schemas.bia import PrimaryAssetCreate, PrimaryAssetOut
from riskledger.services.store import RecordStore

router = APIRouter(prefix="/api/v1/assets", tags=["Assets"])


@router.get("", response_model=list[PrimaryAssetOut], summary="List primary assets")
async def list_assets(store: RecordStore = Depends(get_store)):
    return await store.query("primary_assets", order_by="name")


@router.get("/{asset_id}", response_model=PrimaryAssetOut, summary="Get primary asset")
async def get_asset(asset_id: int, store: RecordStore = Depends(get_store)):
    return await store.require("primary_assets", asset_id)


@router.post("", response_model=PrimaryAssetOut, status_code=201, summary="Create primary asset")
async def create_asset(body: PrimaryAssetCreate, store: RecordStore = Depends(get_store)):
    asset = await store.insert("primary_assets", body.model_dump())
    await store.commit()
    return asset
