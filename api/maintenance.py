"""Stand-alone maintenance calorie calculator.

Computes BMR and maintenance calories from biometrics posted by the client
without touching any stored user.
"""

from fastapi import APIRouter
from core.exceptions import ValidationError
from core.logger import get_logger
from schemas.user_schema import MaintenanceRequest, MaintenanceResponse
from services.nutrition_calculator import nutrition_calculator

logger = get_logger("api.maintenance")
router = APIRouter(tags=["maintenance"])

MIN_ACTIVITY_FACTOR = 1.2
MAX_ACTIVITY_FACTOR = 1.9


@router.post("/calculate-maintain", response_model=MaintenanceResponse)
def calculate_maintain(payload: MaintenanceRequest):
    """Return BMR (Mifflin-St Jeor) and maintenance calories for the inputs.

    Raises:
        ValidationError: If the activity level is unknown or out of range.
    """
    factor = nutrition_calculator.resolve_activity_factor(payload.activity)
    if not MIN_ACTIVITY_FACTOR <= factor <= MAX_ACTIVITY_FACTOR:
        raise ValidationError(
            f"activity must be between {MIN_ACTIVITY_FACTOR} and {MAX_ACTIVITY_FACTOR}", field="activity"
        )
    bmr = nutrition_calculator.calculate_bmr(payload.weight, payload.height, payload.age, payload.gender)
    maintenance = nutrition_calculator.calculate_maintenance(bmr, factor)
    logger.debug("Maintenance calculated: bmr=%s factor=%s -> %s", bmr, factor, maintenance)
    return MaintenanceResponse(bmr=bmr, maintenance=maintenance)
