"""
Flavor/Step Manager - master-detail controller for humor flavors and their steps.

Holds the state of one page view (flavor list, selected flavor, its steps and
the two edit forms) and runs each operation as a direct request against the
store. Every mutating operation returns an OperationResult; on failure the
form is left open with the values the user entered.
"""

from typing import List, Optional
from models.data_models import (
    FlavorForm,
    FlavorStep,
    HumorFlavor,
    OperationResult,
    StepForm,
)
from storage.supabase_client import StoreError, SupabaseClient
from utils.logger import setup_logger

logger = setup_logger(name=__name__)


def parse_step_number(value) -> Optional[int]:
    """Parse a step number from form input; None unless it's a positive integer."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if number >= 1 else None


class FlavorStepManager:
    """
    CRUD controller over humor flavors and their ordered steps.

    State is scoped to one page view: build a manager per request, load the
    flavors, optionally select one, then apply a single user action.
    """

    def __init__(self, store: SupabaseClient):
        """
        Initialize manager with a store.

        Args:
            store: Object implementing the SupabaseClient flavor/step methods
        """
        self.store = store
        self.flavors: List[HumorFlavor] = []
        self.selected_flavor: Optional[HumorFlavor] = None
        self.steps: List[FlavorStep] = []
        self.flavor_form = FlavorForm()
        self.step_form = StepForm()

    # ------------------------------------------------------------------
    # Loading and selection
    # ------------------------------------------------------------------

    def load_flavors(self) -> OperationResult:
        """Fetch all flavors ordered by name and replace the in-memory list."""
        try:
            self.flavors = self.store.list_flavors()
        except StoreError as e:
            return OperationResult.failed(str(e))
        return OperationResult.success(data=self.flavors)

    def load_steps(self) -> OperationResult:
        """Fetch the steps of the selected flavor ordered by step_number."""
        if self.selected_flavor is None:
            self.steps = []
            return OperationResult.success(data=self.steps)
        try:
            self.steps = self.store.list_steps_by_flavor(self.selected_flavor.id)
        except StoreError as e:
            return OperationResult.failed(str(e))
        return OperationResult.success(data=self.steps)

    def find_flavor(self, flavor_id: str) -> Optional[HumorFlavor]:
        return next((f for f in self.flavors if f.id == str(flavor_id)), None)

    def find_step(self, step_id: str) -> Optional[FlavorStep]:
        return next((s for s in self.steps if s.id == str(step_id)), None)

    def select_flavor(self, flavor_id: str) -> OperationResult:
        """Set the active flavor, clear the step form and load its steps."""
        flavor = self.find_flavor(flavor_id)
        if flavor is None:
            return OperationResult.invalid(f"Flavor not found: {flavor_id}")

        self.selected_flavor = flavor
        self.step_form = StepForm()
        return self.load_steps()

    def clear_selection(self) -> None:
        self.selected_flavor = None
        self.steps = []
        self.step_form = StepForm()

    # ------------------------------------------------------------------
    # Flavor form
    # ------------------------------------------------------------------

    def open_new_flavor_form(self) -> None:
        self.flavor_form = FlavorForm(open=True)

    def start_edit_flavor(self, flavor_id: str) -> OperationResult:
        """Open the flavor form prefilled with an existing flavor."""
        flavor = self.find_flavor(flavor_id)
        if flavor is None:
            return OperationResult.invalid(f"Flavor not found: {flavor_id}")
        self.flavor_form = FlavorForm(
            open=True,
            editing_id=flavor.id,
            name=flavor.name,
            description=flavor.description or "",
        )
        return OperationResult.success()

    def cancel_flavor_form(self) -> None:
        self.flavor_form = FlavorForm()

    def submit_flavor_form(self) -> OperationResult:
        """Create or update depending on whether a flavor is being edited."""
        if self.flavor_form.editing_id:
            return self.update_flavor()
        return self.create_flavor()

    def create_flavor(self) -> OperationResult:
        """
        Insert a flavor from the form.

        The name must be non-empty after trimming. On success the form is
        cleared and closed and the flavor list reloaded.
        """
        form = self.flavor_form
        if not form.name.strip():
            logger.debug("Ignoring flavor create with empty name")
            return OperationResult.invalid("Flavor name is required")

        try:
            created = self.store.insert_flavor(form.name.strip(), form.description)
        except StoreError as e:
            return OperationResult.failed(str(e))

        self.cancel_flavor_form()
        reload = self.load_flavors()
        if not reload.ok:
            return reload
        return OperationResult.success(f"Created flavor '{form.name.strip()}'", data=created)

    def update_flavor(self) -> OperationResult:
        """Update the flavor being edited with the form's name and description."""
        form = self.flavor_form
        if not form.editing_id:
            return OperationResult.invalid("No flavor is being edited")
        if not form.name.strip():
            return OperationResult.invalid("Flavor name is required")

        try:
            updated = self.store.update_flavor(
                form.editing_id,
                {"name": form.name.strip(), "description": form.description},
            )
        except StoreError as e:
            return OperationResult.failed(str(e))

        editing_id = form.editing_id
        self.cancel_flavor_form()
        reload = self.load_flavors()
        if not reload.ok:
            return reload

        # Keep the selected flavor in sync with its new name
        if self.selected_flavor and self.selected_flavor.id == editing_id:
            self.selected_flavor = self.find_flavor(editing_id) or self.selected_flavor
        return OperationResult.success(f"Updated flavor '{form.name.strip()}'", data=updated)

    def delete_flavor(self, flavor_id: str, confirmed: bool = False) -> OperationResult:
        """
        Delete a flavor and all of its steps.

        Requires confirmation. Steps are removed before the flavor (see
        SupabaseClient.delete_flavor_cascade). If the deleted flavor was
        selected, the selection and step list are cleared.
        """
        if not confirmed:
            logger.info(f"Flavor delete not confirmed (id={flavor_id})")
            return OperationResult.invalid("Deleting a flavor requires confirmation")

        try:
            self.store.delete_flavor_cascade(str(flavor_id))
        except StoreError as e:
            return OperationResult.failed(str(e))

        if self.selected_flavor and self.selected_flavor.id == str(flavor_id):
            self.clear_selection()
        if self.flavor_form.editing_id == str(flavor_id):
            self.cancel_flavor_form()

        reload = self.load_flavors()
        if not reload.ok:
            return reload
        return OperationResult.success("Deleted flavor and its steps")

    # ------------------------------------------------------------------
    # Step form
    # ------------------------------------------------------------------

    def default_step_number(self) -> int:
        """
        Number pre-filled in a new step form.

        Normally the step count + 1. When numbers have gaps (e.g. a middle
        step was deleted) that number may already be in use, so the step
        goes after the highest number instead.
        """
        number = len(self.steps) + 1
        if any(step.step_number == number for step in self.steps):
            number = max(step.step_number for step in self.steps) + 1
        return number

    def open_new_step_form(self) -> OperationResult:
        """Open an empty step form numbered after the existing steps."""
        if self.selected_flavor is None:
            return OperationResult.invalid("Select a flavor first")
        self.step_form = StepForm(open=True, step_number=self.default_step_number())
        return OperationResult.success()

    def start_edit_step(self, step_id: str) -> OperationResult:
        """Open the step form prefilled with an existing step."""
        step = self.find_step(step_id)
        if step is None:
            return OperationResult.invalid(f"Step not found: {step_id}")
        self.step_form = StepForm(
            open=True,
            editing_id=step.id,
            step_number=step.step_number,
            instruction=step.instruction,
        )
        return OperationResult.success()

    def cancel_step_form(self) -> None:
        self.step_form = StepForm(step_number=self.step_form.step_number)

    def submit_step_form(self) -> OperationResult:
        """Create or update depending on whether a step is being edited."""
        if self.step_form.editing_id:
            return self.update_step()
        return self.create_step()

    def _validate_step_form(self) -> tuple:
        """Return (step_number, error) for the current step form."""
        form = self.step_form
        if not form.instruction.strip():
            return None, OperationResult.invalid("Step instruction is required")

        step_number = parse_step_number(form.step_number)
        if step_number is None:
            return None, OperationResult.invalid("Step number must be a positive integer")

        for step in self.steps:
            if step.step_number == step_number and step.id != form.editing_id:
                logger.info(f"Rejected duplicate step number {step_number} for flavor {self.selected_flavor.id}")
                return None, OperationResult.invalid(
                    f"Step {step_number} already exists for this flavor"
                )
        return step_number, None

    def create_step(self) -> OperationResult:
        """
        Insert a step for the selected flavor from the form.

        On success the default step number advances by one, the instruction
        is cleared, the form closes and the steps are reloaded.
        """
        if self.selected_flavor is None:
            return OperationResult.invalid("Select a flavor first")

        step_number, error = self._validate_step_form()
        if error:
            return error

        instruction = self.step_form.instruction.strip()
        try:
            created = self.store.insert_step(self.selected_flavor.id, step_number, instruction)
        except StoreError as e:
            return OperationResult.failed(str(e))

        self.step_form = StepForm(step_number=step_number + 1)
        reload = self.load_steps()
        if not reload.ok:
            return reload
        return OperationResult.success(f"Added step {step_number}", data=created)

    def update_step(self) -> OperationResult:
        """Update step_number and instruction of the step being edited."""
        form = self.step_form
        if not form.editing_id:
            return OperationResult.invalid("No step is being edited")

        step_number, error = self._validate_step_form()
        if error:
            return error

        try:
            updated = self.store.update_step(
                form.editing_id,
                {"step_number": step_number, "instruction": form.instruction.strip()},
            )
        except StoreError as e:
            return OperationResult.failed(str(e))

        self.step_form = StepForm(step_number=step_number)
        reload = self.load_steps()
        if not reload.ok:
            return reload
        return OperationResult.success(f"Updated step {step_number}", data=updated)

    def delete_step(self, step_id: str, confirmed: bool = False) -> OperationResult:
        """Delete a step by ID after confirmation and reload the steps."""
        if not confirmed:
            return OperationResult.invalid("Deleting a step requires confirmation")

        try:
            self.store.delete_step(str(step_id))
        except StoreError as e:
            return OperationResult.failed(str(e))

        if self.step_form.editing_id == str(step_id):
            self.cancel_step_form()

        reload = self.load_steps()
        if not reload.ok:
            return reload
        return OperationResult.success("Deleted step")
