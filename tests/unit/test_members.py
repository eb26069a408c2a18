"""
Tests for campaign member management endpoints.
"""
import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient

from tests.utils.factories import MemberFactory, ProfileFactory, InvitationFactory, new_id
from tests.utils.mocks import create_db_mock

SERVICE = 'app.services.members_service'


class TestListMembers:
    """Tests for GET /campaigns/{id}/members"""

    @pytest.mark.asyncio
    async def test_list_members(self, client: AsyncClient, owner_user, owner_headers, campaign_id):
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("viewer")
        conn.set_fetch_return("FROM campaign_members cm", [
            MemberFactory.create(campaign_id=campaign_id, user_id=owner_user["id"], role="owner",
                                 email=owner_user["email"], display_name="Game Master"),
            MemberFactory.create(campaign_id=campaign_id, role="viewer", email="p@example.com"),
        ])

        with patcher:
            response = await client.get(f"/campaigns/{campaign_id}/members", headers=owner_headers)

        assert response.status_code == 200
        members = response.json()["members"]
        assert [m["role"] for m in members] == ["owner", "viewer"]
        assert members[0]["user"]["email"] == owner_user["email"]

    @pytest.mark.asyncio
    async def test_list_members_non_member(self, client: AsyncClient, owner_headers, campaign_id):
        """Non-members get 403, not an empty list."""
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role(None)

        with patcher:
            response = await client.get(f"/campaigns/{campaign_id}/members", headers=owner_headers)

        assert response.status_code == 403
        assert not conn.was_called_with("fetch", "FROM campaign_members cm")


class TestAddMember:
    """Tests for POST /campaigns/{id}/members"""

    @pytest.mark.asyncio
    async def test_add_existing_account(self, client: AsyncClient, owner_headers, campaign_id):
        """An existing account becomes a member immediately."""
        profile = ProfileFactory.create(email="friend@example.com")
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("owner")
        conn.set_fetchrow_return("FROM profiles WHERE email", profile)
        conn.set_fetchrow_return(
            "INSERT INTO campaign_members",
            MemberFactory.create(campaign_id=campaign_id, user_id=profile["id"], role="co-gm")
        )

        with patcher:
            response = await client.post(
                f"/campaigns/{campaign_id}/members",
                json={"email": "friend@example.com", "role": "co-gm"},
                headers=owner_headers
            )

        assert response.status_code == 201
        data = response.json()
        assert data["member"]["role"] == "co-gm"
        assert data["member"]["user"]["email"] == "friend@example.com"
        assert "invitation" not in data
        assert not conn.was_called_with("fetchrow", "INSERT INTO campaign_invitations")

    @pytest.mark.asyncio
    async def test_add_existing_member_conflict(self, client: AsyncClient, owner_headers, campaign_id):
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("owner")
        conn.set_fetchrow_return("FROM profiles WHERE email", ProfileFactory.create(email="friend@example.com"))
        conn.set_fetchrow_return("INSERT INTO campaign_members", None)

        with patcher:
            response = await client.post(
                f"/campaigns/{campaign_id}/members",
                json={"email": "friend@example.com", "role": "viewer"},
                headers=owner_headers
            )

        assert response.status_code == 400
        assert response.json()["message"] == "User is already a member of this campaign"

    @pytest.mark.asyncio
    async def test_add_unknown_email_creates_invitation(
        self, client: AsyncClient, owner_headers, campaign_id, mock_invitation_email
    ):
        """An email without an account gets an invitation and an email."""
        invitation = InvitationFactory.create(campaign_id=campaign_id, email="new@example.com", role="co-gm")
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("owner")
        conn.set_fetchrow_return("FROM profiles WHERE email", None)
        conn.set_fetchrow_return("SELECT id FROM campaign_invitations", None)
        conn.set_fetchrow_return("INSERT INTO campaign_invitations", invitation)
        conn.set_fetchrow_return("AS campaign_name", {"campaign_name": "Curse of Strahd", "inviter_name": "GM"})

        with patcher:
            response = await client.post(
                f"/campaigns/{campaign_id}/members",
                json={"email": "new@example.com", "role": "co-gm"},
                headers=owner_headers
            )

        assert response.status_code == 201
        data = response.json()
        assert data["invitation"]["email"] == "new@example.com"
        assert data["invitation"]["role"] == "co-gm"
        assert data["invitation"]["accepted"] is False
        insert_args = conn.calls("fetchrow", "INSERT INTO campaign_invitations")[0]
        assert insert_args[2] == "co-gm"
        assert insert_args[5] > datetime.now(timezone.utc) + timedelta(days=29)
        assert "token" not in data["invitation"]
        mock_invitation_email.assert_awaited_once()
        assert mock_invitation_email.await_args.kwargs["token"] == invitation["token"]
        assert mock_invitation_email.await_args.kwargs["campaign_name"] == "Curse of Strahd"

    @pytest.mark.asyncio
    async def test_email_stored_exactly_as_typed(
        self, client: AsyncClient, owner_headers, campaign_id, mock_invitation_email
    ):
        """Accepting compares emails exactly, so the invitation keeps the typed casing."""
        invitation = InvitationFactory.create(campaign_id=campaign_id, email="Bob@Example.COM")
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("owner")
        conn.set_fetchrow_return("FROM profiles WHERE email", None)
        conn.set_fetchrow_return("SELECT id FROM campaign_invitations", None)
        conn.set_fetchrow_return("INSERT INTO campaign_invitations", invitation)

        with patcher:
            response = await client.post(
                f"/campaigns/{campaign_id}/members",
                json={"email": "Bob@Example.COM", "role": "viewer"},
                headers=owner_headers
            )

        assert response.status_code == 201
        assert conn.calls("fetchrow", "FROM profiles WHERE email")[0] == ("Bob@Example.COM",)
        assert conn.calls("fetchrow", "INSERT INTO campaign_invitations")[0][1] == "Bob@Example.COM"
        assert mock_invitation_email.await_args.kwargs["email"] == "Bob@Example.COM"

    @pytest.mark.asyncio
    async def test_most_recent_profile_for_email(self, client: AsyncClient, owner_headers, campaign_id):
        """Several accounts may share an email; the newest one is added."""
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("owner")
        conn.set_fetchrow_return("FROM profiles WHERE email", ProfileFactory.create(email="ann@example.com"))
        conn.set_fetchrow_return("INSERT INTO campaign_members", MemberFactory.create(campaign_id=campaign_id))

        with patcher:
            response = await client.post(
                f"/campaigns/{campaign_id}/members",
                json={"email": "ann@example.com", "role": "viewer"},
                headers=owner_headers
            )

        assert response.status_code == 201
        lookup = [q for m, q, _ in conn.get_call_history() if "FROM profiles WHERE email" in q][0]
        assert "ORDER BY created_at DESC" in lookup
        assert "LIMIT 1" in lookup

    @pytest.mark.asyncio
    async def test_email_failure_keeps_invitation(
        self, client: AsyncClient, owner_headers, campaign_id, mock_invitation_email
    ):
        mock_invitation_email.return_value = False
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("owner")
        conn.set_fetchrow_return(
            "INSERT INTO campaign_invitations",
            InvitationFactory.create(campaign_id=campaign_id, email="new@example.com")
        )

        with patcher:
            response = await client.post(
                f"/campaigns/{campaign_id}/members",
                json={"email": "new@example.com", "role": "viewer"},
                headers=owner_headers
            )

        assert response.status_code == 201
        assert "invitation" in response.json()

    @pytest.mark.asyncio
    async def test_add_member_requires_owner(self, client: AsyncClient, owner_headers, campaign_id):
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("co-gm")

        with patcher:
            response = await client.post(
                f"/campaigns/{campaign_id}/members",
                json={"email": "friend@example.com", "role": "viewer"},
                headers=owner_headers
            )

        assert response.status_code == 403
        assert response.json()["message"] == "Only campaign owners can add members"
        assert not conn.was_called_with("fetchrow", "FROM profiles WHERE email")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"email": "friend@example.com", "role": "owner"},
        {"email": "not-an-email", "role": "viewer"},
        {"role": "viewer"},
    ])
    async def test_add_member_invalid_payload(self, client: AsyncClient, owner_headers, campaign_id, payload):
        patcher, conn = create_db_mock(SERVICE)

        with patcher:
            response = await client.post(
                f"/campaigns/{campaign_id}/members", json=payload, headers=owner_headers
            )

        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"
        assert conn.get_call_history() == []


class TestUpdateMemberRole:
    """Tests for PATCH /campaigns/{id}/members"""

    @pytest.mark.asyncio
    async def test_promote_viewer(self, client: AsyncClient, owner_headers, campaign_id):
        member_id = new_id()
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("owner")
        conn.set_fetchrow_return("SELECT id, role, user_id FROM campaign_members", {
            "id": member_id, "role": "viewer", "user_id": new_id()
        })
        conn.set_fetchrow_return("WITH updated AS", MemberFactory.create(
            id=member_id, campaign_id=campaign_id, role="co-gm", email="p@example.com"
        ))

        with patcher:
            response = await client.patch(
                f"/campaigns/{campaign_id}/members",
                json={"memberId": member_id, "role": "co-gm"},
                headers=owner_headers
            )

        assert response.status_code == 200
        assert response.json()["member"]["role"] == "co-gm"
        assert conn.calls("fetchrow", "WITH updated AS")[0] == (member_id, "co-gm")

    @pytest.mark.asyncio
    async def test_owner_role_is_immutable(self, client: AsyncClient, owner_headers, campaign_id):
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("owner")
        conn.set_fetchrow_return("SELECT id, role, user_id FROM campaign_members", {
            "id": new_id(), "role": "owner", "user_id": new_id()
        })

        with patcher:
            response = await client.patch(
                f"/campaigns/{campaign_id}/members",
                json={"memberId": new_id(), "role": "viewer"},
                headers=owner_headers
            )

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot change owner role. Transfer ownership separately."
        assert not conn.was_called_with("fetchrow", "WITH updated AS")

    @pytest.mark.asyncio
    async def test_member_of_other_campaign_not_found(self, client: AsyncClient, owner_headers, campaign_id):
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("owner")

        with patcher:
            response = await client.patch(
                f"/campaigns/{campaign_id}/members",
                json={"memberId": new_id(), "role": "viewer"},
                headers=owner_headers
            )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_cannot_assign_owner(self, client: AsyncClient, owner_headers, campaign_id):
        patcher, conn = create_db_mock(SERVICE)

        with patcher:
            response = await client.patch(
                f"/campaigns/{campaign_id}/members",
                json={"memberId": new_id(), "role": "owner"},
                headers=owner_headers
            )

        assert response.status_code == 400


class TestRemoveMember:
    """Tests for DELETE /campaigns/{id}/members?memberId="""

    @pytest.mark.asyncio
    async def test_remove_member(self, client: AsyncClient, owner_headers, campaign_id):
        member_id = new_id()
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("owner")
        conn.set_fetchrow_return("SELECT id, role, user_id FROM campaign_members", {
            "id": member_id, "role": "viewer", "user_id": new_id()
        })

        with patcher:
            response = await client.delete(
                f"/campaigns/{campaign_id}/members",
                params={"memberId": member_id},
                headers=owner_headers
            )

        assert response.status_code == 200
        assert conn.calls("execute", "DELETE FROM campaign_members") == [(member_id,)]

    @pytest.mark.asyncio
    async def test_remove_requires_member_id(self, client: AsyncClient, owner_headers, campaign_id):
        patcher, conn = create_db_mock(SERVICE)

        with patcher:
            response = await client.delete(f"/campaigns/{campaign_id}/members", headers=owner_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "memberId query parameter required"

    @pytest.mark.asyncio
    async def test_cannot_remove_owner(self, client: AsyncClient, owner_headers, campaign_id):
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("owner")
        conn.set_fetchrow_return("SELECT id, role, user_id FROM campaign_members", {
            "id": new_id(), "role": "owner", "user_id": new_id()
        })

        with patcher:
            response = await client.delete(
                f"/campaigns/{campaign_id}/members",
                params={"memberId": new_id()},
                headers=owner_headers
            )

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot remove campaign owner"
        assert not conn.was_called_with("execute", "DELETE FROM campaign_members")

    @pytest.mark.asyncio
    async def test_viewer_cannot_remove(self, client: AsyncClient, other_headers, campaign_id):
        patcher, conn = create_db_mock(SERVICE)
        conn.set_role("viewer")

        with patcher:
            response = await client.delete(
                f"/campaigns/{campaign_id}/members",
                params={"memberId": new_id()},
                headers=other_headers
            )

        assert response.status_code == 403


class TestCharacterName:
    """Tests for PATCH /campaigns/{id}/members/me/character"""

    @pytest.mark.asyncio
    async def test_set_character_name(self, client: AsyncClient, other_user, other_headers, campaign_id):
        patcher, conn = create_db_mock(SERVICE)
        conn.set_fetchrow_return("SET character_name", {"id": new_id(), "character_name": "Strider"})

        with patcher:
            response = await client.patch(
                f"/campaigns/{campaign_id}/members/me/character",
                json={"characterName": "  Strider "},
                headers=other_headers
            )

        assert response.status_code == 200
        assert response.json()["characterName"] == "Strider"
        assert conn.calls("fetchrow", "SET character_name")[0] == (campaign_id, other_user["id"], "Strider")

    @pytest.mark.asyncio
    async def test_non_member_cannot_set_character_name(self, client: AsyncClient, other_headers, campaign_id):
        patcher, conn = create_db_mock(SERVICE)

        with patcher:
            response = await client.patch(
                f"/campaigns/{campaign_id}/members/me/character",
                json={"characterName": "Strider"},
                headers=other_headers
            )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_character_name_rejected(self, client: AsyncClient, other_headers, campaign_id):
        """An empty body is not a request to clear the name."""
        patcher, conn = create_db_mock(SERVICE)

        with patcher:
            response = await client.patch(
                f"/campaigns/{campaign_id}/members/me/character",
                json={},
                headers=other_headers
            )

        assert response.status_code == 400
        assert conn.get_call_history() == []

    @pytest.mark.asyncio
    async def test_clear_character_name(self, client: AsyncClient, other_user, other_headers, campaign_id):
        patcher, conn = create_db_mock(SERVICE)
        conn.set_fetchrow_return("SET character_name", {"id": new_id(), "character_name": None})

        with patcher:
            response = await client.patch(
                f"/campaigns/{campaign_id}/members/me/character",
                json={"characterName": None},
                headers=other_headers
            )

        assert response.status_code == 200
        assert response.json()["characterName"] is None
        assert conn.calls("fetchrow", "SET character_name")[0] == (campaign_id, other_user["id"], None)
