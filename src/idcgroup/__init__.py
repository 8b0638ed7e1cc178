"""Add an IAM Identity Center user to a group, as a host-driven job action.

The host framework imports this package and calls the three entry points
``invoke``, ``error`` and ``halt``.
"""

from idcgroup.action import GroupMembershipAction, error, halt, invoke
from idcgroup.errors import ActionError, FatalError, RetryableError

__all__ = [
    "ActionError",
    "FatalError",
    "GroupMembershipAction",
    "RetryableError",
    "error",
    "halt",
    "invoke",
]
