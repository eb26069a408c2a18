# Models module for the campaign membership API
from app.models.member import (
    CampaignRole, AssignableRole, Member, MemberProfile,
    MemberAddRequest, MemberRoleUpdate, CharacterNameUpdate
)
from app.models.invitation import Invitation, InvitationAccept
from app.models.invite_link import (
    InviteLink, InviteLinkCreate, InviteLinkJoin, InviteLinkPreview,
    InviteLinkStatus, JoinResult
)
from app.models.join_request import (
    JoinRequest, JoinRequestAction, JoinRequestReview, JoinRequestStatus
)
from app.models.campaign import Campaign, CampaignCreate
from app.models.profile import Profile, ProfileBootstrap, ProfileBootstrapResult, DirectoryRole
