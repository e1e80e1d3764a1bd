from uuid import UUID

from src.domain.entities import RequestContext


def can_act_on(requester_id: UUID, requester_is_admin: bool, target_user_id: UUID) -> bool:
    """Self-or-admin rule."""
    if requester_is_admin:
        return True
    return str(requester_id) == str(target_user_id)


class PolicyEngine:
    def can_act_on(self, actor: RequestContext, target_user_id: UUID) -> bool:
        return can_act_on(actor.user_id, actor.is_admin, target_user_id)

    def can_manage_users(self, actor: RequestContext) -> bool:
        return actor.is_admin
