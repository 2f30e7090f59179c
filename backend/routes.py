"""
JSON API routes for the admin console.

Exposes the same flavor/step operations as the HTML console with explicit
status codes: 422 for validation errors, 502 when Supabase fails, 404 for
unknown flavors or steps. Every route sits behind the superadmin guard.
"""

from typing import Any, Dict, Optional, Union
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from backend.guard import get_store, require_superadmin
from flavors.manager import FlavorStepManager
from models.data_models import OperationResult
from storage.supabase_client import SupabaseClient
from utils.logger import setup_logger

logger = setup_logger(name=__name__)

router = APIRouter(prefix="/api", tags=["flavors"], dependencies=[Depends(require_superadmin)])


class FlavorPayload(BaseModel):
    """Request body for creating or updating a flavor."""
    name: str
    description: str = ""


class StepPayload(BaseModel):
    """Request body for creating or updating a step.

    step_number defaults to the next position on create and to the
    current number on update.
    """
    instruction: str
    step_number: Optional[Union[int, str]] = None


def _raise_for(result: OperationResult) -> None:
    """Translate a failed OperationResult into an HTTPException."""
    if result.ok:
        return
    if result.status == "validation_error":
        raise HTTPException(status_code=422, detail=result.message)
    raise HTTPException(status_code=502, detail=result.message)


def _dump(item: Any) -> Optional[Dict[str, Any]]:
    return item.model_dump(mode="json") if item is not None else None


def _manager_for(store: SupabaseClient, flavor_id: Optional[str] = None) -> FlavorStepManager:
    """Load flavors and select one; 404 if the flavor doesn't exist."""
    manager = FlavorStepManager(store)
    _raise_for(manager.load_flavors())
    if flavor_id is not None:
        if manager.find_flavor(flavor_id) is None:
            raise HTTPException(status_code=404, detail=f"Flavor not found: {flavor_id}")
        _raise_for(manager.select_flavor(flavor_id))
    return manager


@router.get("/stats")
def get_stats(request: Request, store: SupabaseClient = Depends(get_store)):
    """
    Get dashboard statistics.

    Returns:
    - total_users, total_images, total_captions, total_votes, superadmins,
      recent_users (profiles created within RECENT_USERS_DAYS)
    """
    try:
        config = request.app.state.config
        stats = store.get_dashboard_stats(recent_days=config.recent_users_days)
        return stats.model_dump()
    except Exception as e:
        logger.error(f"Failed to get stats: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get stats: {str(e)}")


@router.get("/flavors")
def list_flavors(store: SupabaseClient = Depends(get_store)):
    """
    List all humor flavors ordered by name.

    Returns:
    - flavors: List of flavor objects
    """
    try:
        manager = _manager_for(store)
        logger.info(f"Listed {len(manager.flavors)} flavors")
        return {"flavors": [_dump(f) for f in manager.flavors]}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list flavors: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list flavors: {str(e)}")


@router.post("/flavors", status_code=201)
def create_flavor(payload: FlavorPayload, store: SupabaseClient = Depends(get_store)):
    """
    Create a humor flavor.

    Raises:
    - 422: If the name is empty
    - 502: If Supabase rejects the insert
    """
    try:
        manager = _manager_for(store)
        manager.open_new_flavor_form()
        manager.flavor_form.name = payload.name
        manager.flavor_form.description = payload.description
        result = manager.create_flavor()
        _raise_for(result)
        return {"message": result.message, "flavor": _dump(result.data)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create flavor: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create flavor: {str(e)}")


@router.patch("/flavors/{flavor_id}")
def update_flavor(flavor_id: str, payload: FlavorPayload, store: SupabaseClient = Depends(get_store)):
    """
    Update a flavor's name and description.

    Raises:
    - 404: If the flavor is not found
    - 422: If the name is empty
    """
    try:
        manager = _manager_for(store)
        if manager.find_flavor(flavor_id) is None:
            raise HTTPException(status_code=404, detail=f"Flavor not found: {flavor_id}")
        manager.start_edit_flavor(flavor_id)
        manager.flavor_form.name = payload.name
        manager.flavor_form.description = payload.description
        result = manager.update_flavor()
        _raise_for(result)
        return {"message": result.message, "flavor": _dump(manager.find_flavor(flavor_id))}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update flavor {flavor_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update flavor: {str(e)}")


@router.delete("/flavors/{flavor_id}")
def delete_flavor(flavor_id: str, store: SupabaseClient = Depends(get_store)):
    """
    Delete a flavor and all of its steps.

    The API call itself is the confirmation.

    Raises:
    - 404: If the flavor is not found
    """
    try:
        manager = _manager_for(store)
        if manager.find_flavor(flavor_id) is None:
            raise HTTPException(status_code=404, detail=f"Flavor not found: {flavor_id}")
        result = manager.delete_flavor(flavor_id, confirmed=True)
        _raise_for(result)
        return {"message": result.message, "deleted": flavor_id}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete flavor {flavor_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to delete flavor: {str(e)}")


@router.get("/flavors/{flavor_id}/steps")
def list_steps(flavor_id: str, store: SupabaseClient = Depends(get_store)):
    """
    List a flavor's steps ordered by step_number.

    Returns:
    - flavor: The selected flavor
    - steps: Its steps
    - next_step_number: Default number for a new step
    """
    try:
        manager = _manager_for(store, flavor_id)
        return {
            "flavor": _dump(manager.selected_flavor),
            "steps": [_dump(s) for s in manager.steps],
            "next_step_number": manager.default_step_number(),
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list steps for flavor {flavor_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list steps: {str(e)}")


@router.post("/flavors/{flavor_id}/steps", status_code=201)
def create_step(flavor_id: str, payload: StepPayload, store: SupabaseClient = Depends(get_store)):
    """
    Add a step to a flavor.

    Raises:
    - 404: If the flavor is not found
    - 422: If the instruction is empty or the step number is invalid or taken
    """
    try:
        manager = _manager_for(store, flavor_id)
        manager.open_new_step_form()
        if payload.step_number is not None:
            manager.step_form.step_number = payload.step_number
        manager.step_form.instruction = payload.instruction
        result = manager.create_step()
        _raise_for(result)
        return {"message": result.message, "step": _dump(result.data)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create step for flavor {flavor_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create step: {str(e)}")


@router.patch("/flavors/{flavor_id}/steps/{step_id}")
def update_step(
    flavor_id: str,
    step_id: str,
    payload: StepPayload,
    store: SupabaseClient = Depends(get_store)
):
    """
    Update a step's number and instruction.

    Raises:
    - 404: If the flavor or step is not found
    """
    try:
        manager = _manager_for(store, flavor_id)
        if manager.find_step(step_id) is None:
            raise HTTPException(status_code=404, detail=f"Step not found: {step_id}")
        manager.start_edit_step(step_id)
        if payload.step_number is not None:
            manager.step_form.step_number = payload.step_number
        manager.step_form.instruction = payload.instruction
        result = manager.update_step()
        _raise_for(result)
        return {"message": result.message, "step": _dump(manager.find_step(step_id))}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update step {step_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update step: {str(e)}")


@router.delete("/flavors/{flavor_id}/steps/{step_id}")
def delete_step(flavor_id: str, step_id: str, store: SupabaseClient = Depends(get_store)):
    """
    Delete a step.

    Raises:
    - 404: If the flavor or step is not found
    """
    try:
        manager = _manager_for(store, flavor_id)
        if manager.find_step(step_id) is None:
            raise HTTPException(status_code=404, detail=f"Step not found: {step_id}")
        result = manager.delete_step(step_id, confirmed=True)
        _raise_for(result)
        return {"message": result.message, "deleted": step_id}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete step {step_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to delete step: {str(e)}")
