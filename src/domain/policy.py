"""
Access decision engine.

A single ordered rule table evaluated by one pure function. No I/O: every
fact (principal, asset, parent relation, policy) is passed in. The first rule
that returns a Decision wins.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from src.core.entities import ParentRelation
from src.core.errors import AccessDeniedError
from src.domain.entities import Asset, Principal


class Action(str, Enum):
    UPLOAD = "upload"
    VIEW = "view"
    DOWNLOAD = "download"
    DELETE = "delete"
    UPDATE = "update"
    PROCESS = "process"


class DenyReason(str, Enum):
    NOT_OWNER_NOT_ENROLLED = "NotOwnerNotEnrolled"
    ROLE_INSUFFICIENT = "RoleInsufficient"
    NO_SUCH_RELATION = "NoSuchRelation"


class DeletePolicy(str, Enum):
    ADMIN_ONLY = "admin_only"
    OWNER_OR_ADMIN = "owner_or_admin"


@dataclass(frozen=True)
class AccessPolicy:
    """Deployment-level switches for the rule table."""

    delete_policy: DeletePolicy = DeletePolicy.ADMIN_ONLY
    instructors_read_all: bool = False


@dataclass(frozen=True)
class Decision:
    allowed: bool
    rule: str
    reason: DenyReason | None = None

    @classmethod
    def allow(cls, rule: str) -> Decision:
        return cls(allowed=True, rule=rule)

    @classmethod
    def deny(cls, reason: DenyReason, rule: str) -> Decision:
        return cls(allowed=False, rule=rule, reason=reason)


@dataclass(frozen=True)
class AccessRequest:
    principal: Principal
    action: Action
    asset: Asset | None
    relation: ParentRelation | None
    policy: AccessPolicy

    @property
    def is_owner(self) -> bool:
        return self.asset is not None and self.asset.owner_id == self.principal.subject_id


Rule = Callable[[AccessRequest], Decision | None]

READ_ACTIONS = frozenset({Action.VIEW, Action.DOWNLOAD})


def _admin(req: AccessRequest) -> Decision | None:
    if req.principal.is_admin:
        return Decision.allow("admin")
    return None


def _upload(req: AccessRequest) -> Decision | None:
    if req.action is not Action.UPLOAD:
        return None
    # Creation, not access to existing state: ownership is irrelevant.
    if req.principal.is_instructor:
        return Decision.allow("upload")
    return Decision.deny(DenyReason.ROLE_INSUFFICIENT, "upload")


def _read_unattached(req: AccessRequest) -> Decision | None:
    if req.action not in READ_ACTIONS or req.asset is None or req.asset.parent_id is not None:
        return None
    if req.is_owner:
        return Decision.allow("read_owner")
    return Decision.deny(DenyReason.NOT_OWNER_NOT_ENROLLED, "read_owner")


def _read_attached(req: AccessRequest) -> Decision | None:
    if req.action not in READ_ACTIONS or req.asset is None or req.asset.parent_id is None:
        return None
    subject = req.principal.subject_id
    if req.is_owner:
        return Decision.allow("read_parent")
    if req.policy.instructors_read_all and req.principal.is_instructor:
        return Decision.allow("read_parent")

    relation = req.relation
    if relation is None or relation.parent_id != req.asset.parent_id:
        return Decision.deny(DenyReason.NO_SUCH_RELATION, "read_parent")
    if relation.instructor_id is not None and relation.instructor_id == subject:
        return Decision.allow("read_parent")
    if relation.is_enrolled(subject):
        return Decision.allow("read_parent")
    return Decision.deny(DenyReason.NOT_OWNER_NOT_ENROLLED, "read_parent")


def _delete(req: AccessRequest) -> Decision | None:
    if req.action is not Action.DELETE:
        return None
    if req.policy.delete_policy is DeletePolicy.OWNER_OR_ADMIN:
        if req.is_owner:
            return Decision.allow("delete")
        return Decision.deny(DenyReason.NOT_OWNER_NOT_ENROLLED, "delete")
    return Decision.deny(DenyReason.ROLE_INSUFFICIENT, "delete")


def _update(req: AccessRequest) -> Decision | None:
    if req.action is not Action.UPDATE:
        return None
    if req.is_owner:
        return Decision.allow("update")
    return Decision.deny(DenyReason.NOT_OWNER_NOT_ENROLLED, "update")


def _process(req: AccessRequest) -> Decision | None:
    if req.action is not Action.PROCESS:
        return None
    return Decision.deny(DenyReason.ROLE_INSUFFICIENT, "process")


# Order is significant.
RULES: tuple[tuple[str, Rule], ...] = (
    ("admin", _admin),
    ("upload", _upload),
    ("read_owner", _read_unattached),
    ("read_parent", _read_attached),
    ("delete", _delete),
    ("update", _update),
    ("process", _process),
)

DEFAULT_POLICY = AccessPolicy()


def authorize(
    principal: Principal,
    action: Action,
    asset: Asset | None = None,
    relation: ParentRelation | None = None,
    policy: AccessPolicy = DEFAULT_POLICY,
) -> Decision:
    """Answer whether principal may perform action on asset."""
    req = AccessRequest(
        principal=principal,
        action=Action(action),
        asset=asset,
        relation=relation,
        policy=policy,
    )
    for _, rule in RULES:
        decision = rule(req)
        if decision is not None:
            return decision
    return Decision.deny(DenyReason.NOT_OWNER_NOT_ENROLLED, "default")


class AccessEngine:
    """Binds the rule table to a deployment's AccessPolicy."""

    def __init__(self, policy: AccessPolicy | None = None):
        self.policy = policy or DEFAULT_POLICY

    def check(
        self,
        principal: Principal,
        action: Action,
        asset: Asset | None = None,
        relation: ParentRelation | None = None,
    ) -> Decision:
        return authorize(principal, action, asset, relation, self.policy)

    def require(
        self,
        principal: Principal,
        action: Action,
        asset: Asset | None = None,
        relation: ParentRelation | None = None,
    ) -> None:
        """Raise AccessDeniedError unless the rule table allows the action."""
        decision = self.check(principal, action, asset, relation)
        if not decision.allowed:
            reason = decision.reason or DenyReason.NOT_OWNER_NOT_ENROLLED
            raise AccessDeniedError(
                reason.value,
                f"{Action(action).value} denied for {principal.subject_id} "
                f"by rule '{decision.rule}'",
            )
