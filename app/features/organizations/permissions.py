"""
Role to capability mapping.

The mapping is the single place where the privilege hierarchy lives:
admin and manager share every capability, employee may only submit time
off and edit their own availability. Route handlers use it as the
server-side check and return it to clients so they can hide actions the
caller cannot perform. Keep it minimal; anything added here must be
enforced by the routes as well.
"""
import enum
from dataclasses import dataclass
from functools import lru_cache
from typing import Any


class Role(str, enum.Enum):
    """Privilege level a user holds within one organization."""
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"

    @classmethod
    def parse(cls, value: Any) -> "Role | None":
        """Parse a stored role string; unknown values map to None."""
        if value is None or isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class Capabilities:
    """Capability flags for one role."""
    can_manage_schedule: bool
    can_submit_time_off: bool

    @property
    def can_approve_time_off(self) -> bool:
        return self.can_manage_schedule

    @property
    def can_manage_employees(self) -> bool:
        return self.can_manage_schedule

    def can_edit_availability_for(
        self,
        target_employee_id: str | None,
        my_employee_id: str | None = None,
    ) -> bool:
        """
        Managers and admins may edit anyone's availability; members may edit
        only their own employee record (matched by employee id, not user id).
        """
        if self.can_manage_schedule:
            return True
        if not self.can_submit_time_off or not my_employee_id:
            return False
        return target_employee_id == my_employee_id

    def as_dict(self) -> dict[str, bool]:
        return {
            "can_manage_schedule": self.can_manage_schedule,
            "can_approve_time_off": self.can_approve_time_off,
            "can_manage_employees": self.can_manage_employees,
            "can_submit_time_off": self.can_submit_time_off,
        }


_CAPABILITIES: dict[Role | None, Capabilities] = {
    Role.ADMIN: Capabilities(can_manage_schedule=True, can_submit_time_off=True),
    Role.MANAGER: Capabilities(can_manage_schedule=True, can_submit_time_off=True),
    Role.EMPLOYEE: Capabilities(can_manage_schedule=False, can_submit_time_off=True),
    None: Capabilities(can_manage_schedule=False, can_submit_time_off=False),
}


def capabilities_for(role: Role | str | None) -> Capabilities:
    """Return the capability set for a role (or a raw role string)."""
    return _capabilities_for_role(Role.parse(role))


@lru_cache(maxsize=len(_CAPABILITIES))
def _capabilities_for_role(role: Role | None) -> Capabilities:
    return _CAPABILITIES[role]
