# File: backend/app/api/v1/datasets.py
# Version: v0.2.0
"""Dataset import and management APIs.

Endpoints:
- POST   /datasets/parse                   -> parse + normalize + store a file
- GET    /datasets?projectId=...           -> dataset summaries of a project
- GET    /datasets/{dataset_id}            -> dataset detail (with features)
- DELETE /datasets/{dataset_id}            -> remove dataset and features
- PATCH  /datasets/{dataset_id}/display-name
- PUT    /datasets/{dataset_id}/feature-states
- PUT    /datasets/{dataset_id}/plot-tracks
- PUT    /datasets/{dataset_id}/link-tracks
- GET    /datasets/{dataset_id}/render     -> features reduced for drawing
- GET    /datasets/{dataset_id}/density    -> windowed feature density

v0.2.0
- `render` can stratify by feature type instead of spatial sampling.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from backend.app.core.annotation.coordinates import max_feature_stop
from backend.app.core.annotation.models import FileParseRequest
from backend.app.core.annotation.parsers.base import AnnotationParseError
from backend.app.core.annotation.pipeline import parse_file
from backend.app.core.annotation.statistics import classify_feature_type
from backend.app.core.config import settings
from backend.app.core.optimizer.large_dataset import CacheManager, LargeDatasetOptimizer
from backend.app.db.session import get_db
from backend.app.schemas.dataset import (
    DensityResponse,
    FeatureStatesRequest,
    LinkTracksRequest,
    ParseFileRequest,
    ParseFileResponse,
    PlotTracksRequest,
    RenameDatasetRequest,
    RenderResponse,
)
from backend.app.services.dataset_store import (
    DatasetDetail,
    DatasetNotFoundError,
    delete_dataset,
    get_dataset_detail,
    list_datasets,
    rename_dataset,
    save_dataset,
    update_feature_states,
    update_link_tracks,
    update_plot_tracks,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/datasets", tags=["datasets"])


def _new_optimizer() -> LargeDatasetOptimizer:
    return LargeDatasetOptimizer(cache=CacheManager(settings.OPTIMIZER_CACHE_SIZE))


def _load_detail(db: Session, dataset_id: str) -> DatasetDetail:
    try:
        detail = get_dataset_detail(db, dataset_id=dataset_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if detail is None:
        raise HTTPException(status_code=404, detail="Dataset not found")
    return detail


def _run_update(fn: Callable[..., Any], db: Session, dataset_id: str, **kwargs) -> Dict[str, Any]:
    try:
        return fn(db, dataset_id=dataset_id, **kwargs).to_dict()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DatasetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/parse", response_model=ParseFileResponse)
def parse_and_store(payload: ParseFileRequest, db: Session = Depends(get_db)):
    request = FileParseRequest(
        file_path=payload.filePath,
        project_id=payload.projectId,
        format_hint=payload.formatHint,
    )
    try:
        result = parse_file(request)
    except AnnotationParseError as e:
        logger.warning("Import of %s failed: %s", payload.filePath, e)
        raise HTTPException(status_code=422, detail=str(e))

    summary = save_dataset(db, result.dataset)
    return {
        "dataset": summary.to_dict(),
        "warnings": result.warnings,
        "preview": list(result.dataset.features[: settings.PREVIEW_FEATURES]),
    }


@router.get("")
def read_datasets(projectId: str = Query(..., min_length=1), db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    return [s.to_dict() for s in list_datasets(db, project_id=projectId)]


@router.get("/{dataset_id}")
def read_dataset(dataset_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    return _load_detail(db, dataset_id).to_dict()


@router.delete("/{dataset_id}")
def remove_dataset(dataset_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        deleted = delete_dataset(db, dataset_id=dataset_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Dataset not found")
    return {"deleted": True, "id": dataset_id}


@router.patch("/{dataset_id}/display-name")
def patch_display_name(dataset_id: str, payload: RenameDatasetRequest, db: Session = Depends(get_db)):
    return _run_update(rename_dataset, db, dataset_id, display_name=payload.displayName)


@router.put("/{dataset_id}/feature-states")
def put_feature_states(dataset_id: str, payload: FeatureStatesRequest, db: Session = Depends(get_db)):
    return _run_update(update_feature_states, db, dataset_id, feature_states=payload.featureStates)


@router.put("/{dataset_id}/plot-tracks")
def put_plot_tracks(dataset_id: str, payload: PlotTracksRequest, db: Session = Depends(get_db)):
    return _run_update(update_plot_tracks, db, dataset_id, plot_tracks=payload.plotTracks)


@router.put("/{dataset_id}/link-tracks")
def put_link_tracks(dataset_id: str, payload: LinkTracksRequest, db: Session = Depends(get_db)):
    return _run_update(update_link_tracks, db, dataset_id, link_tracks=payload.linkTracks)


@router.get("/{dataset_id}/render", response_model=RenderResponse)
def render_features(
    dataset_id: str,
    maxFeatures: Optional[int] = Query(None, ge=1),
    sampleRate: float = Query(1.0, gt=0, le=1),
    importanceThreshold: float = Query(0.0, ge=0),
    stratifyBy: Optional[Literal["type"]] = Query(None),
    db: Session = Depends(get_db),
):
    detail = _load_detail(db, dataset_id)
    features = detail.features
    limit = maxFeatures or settings.RENDER_MAX_FEATURES
    optimizer = _new_optimizer()

    if stratifyBy == "type":
        reduced = optimizer.stratified_sampling(features, limit, lambda f: classify_feature_type(f)[0])
    else:
        total_length = detail.total_length or max_feature_stop(features)
        reduced = optimizer.filter_features_for_rendering(
            features,
            total_length,
            max_features=limit,
            sample_rate=sampleRate,
            importance_threshold=importanceThreshold,
        )
    return {"totalFeatures": len(features), "returned": len(reduced), "features": reduced}


@router.get("/{dataset_id}/density", response_model=DensityResponse)
def feature_density(
    dataset_id: str,
    windowSize: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    detail = _load_detail(db, dataset_id)
    window = windowSize or settings.DENSITY_WINDOW_SIZE
    total_length = detail.total_length or max_feature_stop(detail.features)
    points = _new_optimizer().calculate_feature_density(detail.features, total_length, window)
    return {"windowSize": window, "totalLength": total_length, "points": points}
