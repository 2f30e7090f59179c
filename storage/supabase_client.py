"""
Supabase storage client for the admin console.

Wraps the tables the console reads and writes:
- profiles (read-only, used by the access guard and the dashboard)
- humor_flavors / humor_flavor_steps (full CRUD)
- images, captions, caption_votes (counted for the dashboard)

Every method is a single request/response against Supabase; nothing is
cached or retried. Failures are logged and re-raised as StoreError.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from postgrest.exceptions import APIError
from supabase import Client, create_client

from models.data_models import AuthUser, DashboardStats, FlavorStep, HumorFlavor, Profile
from utils.logger import setup_logger

logger = setup_logger(name=__name__)


class StoreError(Exception):
    """A Supabase request failed."""


class SupabaseClient:
    """Client for interacting with Supabase storage and auth."""

    PROFILES_TABLE = "profiles"
    FLAVORS_TABLE = "humor_flavors"
    STEPS_TABLE = "humor_flavor_steps"
    DELETE_FLAVOR_RPC = "delete_humor_flavor"
    # PostgREST "function not in schema cache" / Postgres "undefined_function"
    MISSING_FUNCTION_CODES = ("PGRST202", "42883")

    def __init__(self, supabase_url: str, supabase_key: str):
        """
        Initialize Supabase client.

        Args:
            supabase_url: Supabase project URL
            supabase_key: Supabase API key
        """
        self.supabase_url = supabase_url
        self.supabase_key = supabase_key
        self.client: Client = create_client(supabase_url, supabase_key)
        logger.info(f"Initialized SupabaseClient for {supabase_url}")

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def get_current_user(self, access_token: str) -> Optional[AuthUser]:
        """
        Resolve the user owning an access token.

        Uses the token as a JWT argument so the shared client's own session
        is never touched.

        Returns:
            AuthUser, or None if the token is missing, expired or invalid
        """
        if not access_token:
            return None

        try:
            response = self.client.auth.get_user(access_token)
        except Exception as e:
            logger.warning(f"Failed to resolve user from access token: {e}")
            return None

        user = getattr(response, "user", None)
        if user is None:
            return None
        return AuthUser(id=user.id, email=getattr(user, "email", None))

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """
        Sign in with email and password.

        A throwaway client performs the sign-in, because signing in mutates
        the client's session and the data client is shared across requests.

        Returns:
            Dict with access_token, refresh_token and user (AuthUser)

        Raises:
            StoreError if the credentials are rejected or the request fails
        """
        try:
            auth_client = create_client(self.supabase_url, self.supabase_key)
            response = auth_client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            logger.warning(f"Sign-in failed for {email}: {e}")
            raise StoreError(f"Sign-in failed: {e}") from e

        session = getattr(response, "session", None)
        if session is None or not session.access_token:
            logger.warning(f"Sign-in for {email} returned no session")
            raise StoreError("Sign-in returned no session")

        logger.info(f"Signed in {email}")
        return {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "user": AuthUser(id=response.user.id, email=response.user.email),
        }

    def sign_out(self, access_token: str) -> None:
        """
        Revoke the session behind an access token.

        Raises:
            StoreError if the revoke request fails
        """
        try:
            self.client.auth.admin.sign_out(access_token)
            logger.info("Signed out session")
        except Exception as e:
            logger.error(f"Failed to sign out session: {e}")
            raise StoreError(f"Sign-out failed: {e}") from e

    def get_profile(self, user_id: str) -> Profile:
        """
        Get the profile row for a user.

        Raises:
            StoreError if the profile does not exist or the request fails
        """
        try:
            result = self.client.table(self.PROFILES_TABLE).select("*").eq(
                "id", user_id
            ).single().execute()
        except Exception as e:
            logger.error(f"Failed to get profile (user_id={user_id}): {e}")
            raise StoreError(f"Failed to get profile: {e}") from e

        if not result.data:
            raise StoreError(f"Profile not found: {user_id}")
        return Profile(**result.data)

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def _count(
        self,
        table: str,
        eq: Optional[Dict[str, Any]] = None,
        gte: Optional[Dict[str, Any]] = None
    ) -> int:
        """Count rows with a head-only query."""
        query = self.client.table(table).select("id", count="exact", head=True)
        for column, value in (eq or {}).items():
            query = query.eq(column, value)
        for column, value in (gte or {}).items():
            query = query.gte(column, value)
        result = query.execute()
        return result.count or 0

    def get_dashboard_stats(self, recent_days: int = 7) -> DashboardStats:
        """
        Get aggregate counts for the dashboard.

        Uses count queries instead of fetching rows. A count that fails is
        logged and reported as 0 so one broken table doesn't blank the page.

        Args:
            recent_days: Window for counting newly created profiles

        Returns:
            DashboardStats
        """
        since = (datetime.now(timezone.utc) - timedelta(days=recent_days)).isoformat()
        queries = {
            "total_users": (self.PROFILES_TABLE, {}),
            "total_images": ("images", {}),
            "total_captions": ("captions", {}),
            "total_votes": ("caption_votes", {}),
            "superadmins": (self.PROFILES_TABLE, {"eq": {"is_superadmin": True}}),
            "recent_users": (self.PROFILES_TABLE, {"gte": {"created_at": since}}),
        }

        counts: Dict[str, int] = {}
        for field, (table, filters) in queries.items():
            try:
                counts[field] = self._count(table, **filters)
            except Exception as e:
                logger.error(f"Failed to count {field} from {table}: {e}")
                counts[field] = 0

        return DashboardStats(**counts)

    # ------------------------------------------------------------------
    # Humor flavors
    # ------------------------------------------------------------------

    def list_flavors(self) -> List[HumorFlavor]:
        """
        List all humor flavors ordered by name.

        Raises:
            StoreError if the query fails
        """
        try:
            result = self.client.table(self.FLAVORS_TABLE).select("*").order("name").execute()
            logger.debug(f"Listed {len(result.data)} humor flavors")
            return [HumorFlavor(**row) for row in result.data]
        except Exception as e:
            logger.error(f"Failed to list humor flavors: {e}")
            raise StoreError(f"Failed to list flavors: {e}") from e

    def get_flavor(self, flavor_id: str) -> Optional[HumorFlavor]:
        """
        Get a single flavor by ID.

        Returns:
            HumorFlavor or None if not found

        Raises:
            StoreError if the query fails
        """
        try:
            result = self.client.table(self.FLAVORS_TABLE).select("*").eq(
                "id", flavor_id
            ).execute()
        except Exception as e:
            logger.error(f"Failed to get humor flavor (id={flavor_id}): {e}")
            raise StoreError(f"Failed to get flavor: {e}") from e

        if result.data:
            return HumorFlavor(**result.data[0])
        return None

    def insert_flavor(self, name: str, description: str) -> Optional[HumorFlavor]:
        """
        Insert a humor flavor.

        Returns:
            The inserted flavor, or None if Supabase didn't return the row

        Raises:
            StoreError if the insert fails
        """
        record = {"name": name, "description": description}
        try:
            result = self.client.table(self.FLAVORS_TABLE).insert(record).execute()
            logger.info(f"Inserted humor flavor '{name}'")
            return HumorFlavor(**result.data[0]) if result.data else None
        except Exception as e:
            logger.error(f"Failed to insert humor flavor '{name}': {e}")
            raise StoreError(f"Failed to create flavor: {e}") from e

    def update_flavor(self, flavor_id: str, fields: Dict[str, Any]) -> Optional[HumorFlavor]:
        """
        Update a humor flavor by ID.

        Raises:
            StoreError if the update fails
        """
        try:
            result = self.client.table(self.FLAVORS_TABLE).update(fields).eq(
                "id", flavor_id
            ).execute()
            logger.info(f"Updated humor flavor (id={flavor_id}, fields={sorted(fields)})")
            return HumorFlavor(**result.data[0]) if result.data else None
        except Exception as e:
            logger.error(f"Failed to update humor flavor (id={flavor_id}): {e}")
            raise StoreError(f"Failed to update flavor: {e}") from e

    def delete_flavor(self, flavor_id: str) -> None:
        """
        Delete a single flavor row (steps are not touched).

        Raises:
            StoreError if the delete fails
        """
        try:
            self.client.table(self.FLAVORS_TABLE).delete().eq("id", flavor_id).execute()
            logger.info(f"Deleted humor flavor (id={flavor_id})")
        except Exception as e:
            logger.error(f"Failed to delete humor flavor (id={flavor_id}): {e}")
            raise StoreError(f"Failed to delete flavor: {e}") from e

    def delete_flavor_cascade(self, flavor_id: str) -> None:
        """
        Delete a flavor together with all of its steps.

        Tries the transactional delete_humor_flavor RPC first (created by
        setup/setup_database.py). Only if the function doesn't exist does it
        fall back to two requests: steps first, then the flavor, so a failure
        between the two never leaves steps pointing at a missing flavor.
        Any other RPC error is raised without touching the data.

        Raises:
            StoreError if the RPC fails for another reason or the fallback
            deletes fail
        """
        try:
            self.client.rpc(self.DELETE_FLAVOR_RPC, {"target_flavor_id": flavor_id}).execute()
            logger.info(f"Deleted humor flavor and steps via RPC (id={flavor_id})")
            return
        except APIError as e:
            if e.code not in self.MISSING_FUNCTION_CODES:
                logger.error(f"RPC {self.DELETE_FLAVOR_RPC} failed (id={flavor_id}, code={e.code}): {e.message}")
                raise StoreError(f"Failed to delete flavor: {e.message}") from e
            logger.warning(f"RPC {self.DELETE_FLAVOR_RPC} not found, deleting steps then flavor (id={flavor_id})")
        except Exception as e:
            logger.error(f"RPC {self.DELETE_FLAVOR_RPC} failed (id={flavor_id}): {e}")
            raise StoreError(f"Failed to delete flavor: {e}") from e

        self.delete_steps_by_flavor(flavor_id)
        self.delete_flavor(flavor_id)

    # ------------------------------------------------------------------
    # Flavor steps
    # ------------------------------------------------------------------

    def list_steps_by_flavor(self, flavor_id: str) -> List[FlavorStep]:
        """
        List the steps of a flavor ordered by step_number.

        Raises:
            StoreError if the query fails
        """
        try:
            result = self.client.table(self.STEPS_TABLE).select("*").eq(
                "flavor_id", flavor_id
            ).order("step_number").execute()
            logger.debug(f"Listed {len(result.data)} steps for flavor {flavor_id}")
            return [FlavorStep(**row) for row in result.data]
        except Exception as e:
            logger.error(f"Failed to list steps for flavor {flavor_id}: {e}")
            raise StoreError(f"Failed to list steps: {e}") from e

    def insert_step(self, flavor_id: str, step_number: int, instruction: str) -> Optional[FlavorStep]:
        """
        Insert a step for a flavor.

        Raises:
            StoreError if the insert fails
        """
        record = {
            "flavor_id": flavor_id,
            "step_number": step_number,
            "instruction": instruction,
        }
        try:
            result = self.client.table(self.STEPS_TABLE).insert(record).execute()
            logger.info(f"Inserted step {step_number} for flavor {flavor_id}")
            return FlavorStep(**result.data[0]) if result.data else None
        except Exception as e:
            logger.error(f"Failed to insert step {step_number} for flavor {flavor_id}: {e}")
            raise StoreError(f"Failed to create step: {e}") from e

    def update_step(self, step_id: str, fields: Dict[str, Any]) -> Optional[FlavorStep]:
        """
        Update a step by ID.

        Raises:
            StoreError if the update fails
        """
        try:
            result = self.client.table(self.STEPS_TABLE).update(fields).eq(
                "id", step_id
            ).execute()
            logger.info(f"Updated step (id={step_id}, fields={sorted(fields)})")
            return FlavorStep(**result.data[0]) if result.data else None
        except Exception as e:
            logger.error(f"Failed to update step (id={step_id}): {e}")
            raise StoreError(f"Failed to update step: {e}") from e

    def delete_step(self, step_id: str) -> None:
        """
        Delete a step by ID.

        Raises:
            StoreError if the delete fails
        """
        try:
            self.client.table(self.STEPS_TABLE).delete().eq("id", step_id).execute()
            logger.info(f"Deleted step (id={step_id})")
        except Exception as e:
            logger.error(f"Failed to delete step (id={step_id}): {e}")
            raise StoreError(f"Failed to delete step: {e}") from e

    def delete_steps_by_flavor(self, flavor_id: str) -> None:
        """
        Delete every step belonging to a flavor.

        Raises:
            StoreError if the delete fails
        """
        try:
            self.client.table(self.STEPS_TABLE).delete().eq("flavor_id", flavor_id).execute()
            logger.info(f"Deleted steps for flavor {flavor_id}")
        except Exception as e:
            logger.error(f"Failed to delete steps for flavor {flavor_id}: {e}")
            raise StoreError(f"Failed to delete steps: {e}") from e
