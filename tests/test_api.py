"""Tests for the HTTP API — match routes, decryption routes, error mapping."""

import json

import pytest

from aura.matching.config import match_key


def _auth(signer) -> dict:
    return {"X-Wallet-Address": signer.address}


async def _propose(client, signer, interests=("Web3", "Art")) -> str:
    resp = await client.post("/api/v1/matches", json={"interests": list(interests)}, headers=_auth(signer))
    assert resp.status_code == 201
    return resp.json()["match_id"]


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["ledger_available"] is True


# ---------------------------------------------------------------------------
# Propose / list / get
# ---------------------------------------------------------------------------


class TestMatchRoutes:

    @pytest.mark.asyncio
    async def test_propose_requires_wallet(self, client):
        resp = await client.post("/api/v1/matches", json={"interests": ["Web3"]})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Please connect wallet first"

    @pytest.mark.asyncio
    async def test_propose_unknown_interest(self, client, alice):
        resp = await client.post(
            "/api/v1/matches", json={"interests": ["Knitting"]}, headers=_auth(alice),
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_propose_empty_interests(self, client, alice, ledger):
        resp = await client.post("/api/v1/matches", json={"interests": []}, headers=_auth(alice))
        assert resp.status_code == 422
        assert ledger.writes == []

    @pytest.mark.asyncio
    async def test_propose_then_get(self, client, alice):
        match_id = await _propose(client, alice)

        resp = await client.get(f"/api/v1/matches/{match_id}", headers=_auth(alice))
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "pending"
        assert body["interests"] == ["Web3", "Art"]
        assert body["counterparty"] == alice.address
        assert body["is_owner"] is True
        assert body["encrypted_compatibility"].startswith("FHE-")

    @pytest.mark.asyncio
    async def test_get_missing(self, client):
        resp = await client.get("/api/v1/matches/nope")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_get_corrupt_record(self, client, ledger):
        await ledger.set_data(match_key("bad"), b"{oops")
        resp = await client.get("/api/v1/matches/bad")
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_list_and_search(self, client, alice, bob):
        await _propose(client, alice, ["Web3"])
        await _propose(client, bob, ["Photography"])

        resp = await client.get("/api/v1/matches")
        assert resp.status_code == 200
        assert len(resp.json()) == 2

        resp = await client.get("/api/v1/matches", params={"q": "photo"})
        assert [m["interests"] for m in resp.json()] == [["Photography"]]

    @pytest.mark.asyncio
    async def test_stats(self, client, alice):
        first = await _propose(client, alice)
        await _propose(client, alice)
        await client.post(f"/api/v1/matches/{first}/reject", headers=_auth(alice))

        resp = await client.get("/api/v1/matches/stats")
        assert resp.json() == {"total": 2, "matched": 0, "pending": 1, "rejected": 1}


# ---------------------------------------------------------------------------
# Accept / reject
# ---------------------------------------------------------------------------


class TestTransitionRoutes:

    @pytest.mark.asyncio
    async def test_accept_by_counterparty(self, client, alice):
        match_id = await _propose(client, alice)
        resp = await client.post(f"/api/v1/matches/{match_id}/accept", headers=_auth(alice))
        assert resp.status_code == 200
        assert resp.json()["status"] == "matched"

    @pytest.mark.asyncio
    async def test_accept_by_other_wallet_forbidden(self, client, alice, bob):
        match_id = await _propose(client, alice)
        resp = await client.post(f"/api/v1/matches/{match_id}/accept", headers=_auth(bob))
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_double_accept_conflict(self, client, alice):
        match_id = await _propose(client, alice)
        await client.post(f"/api/v1/matches/{match_id}/accept", headers=_auth(alice))
        resp = await client.post(f"/api/v1/matches/{match_id}/accept", headers=_auth(alice))
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_accept_unreadable_compatibility_is_422(self, client, alice, ledger):
        match_id = await _propose(client, alice)
        stored = json.loads(await ledger.get_data(match_key(match_id)))
        stored["compatibility"] = "FHE-\u00e9"
        await ledger.set_data(match_key(match_id), json.dumps(stored).encode())

        resp = await client.post(f"/api/v1/matches/{match_id}/accept", headers=_auth(alice))

        assert resp.status_code == 422
        assert json.loads(await ledger.get_data(match_key(match_id)))["status"] == "pending"

    @pytest.mark.asyncio
    async def test_reject(self, client, alice, bob):
        match_id = await _propose(client, alice)
        resp = await client.post(f"/api/v1/matches/{match_id}/reject", headers=_auth(bob))
        assert resp.status_code == 200
        assert resp.json()["status"] == "rejected"
        assert resp.json()["is_owner"] is False

    @pytest.mark.asyncio
    async def test_reject_missing(self, client, alice):
        resp = await client.post("/api/v1/matches/nope/reject", headers=_auth(alice))
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Challenge / decrypt
# ---------------------------------------------------------------------------


class TestDecryptRoutes:

    @pytest.mark.asyncio
    async def test_challenge(self, client, challenge):
        resp = await client.get("/api/v1/challenge")
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == challenge.to_message()
        assert body["duration_days"] == 30

    @pytest.mark.asyncio
    async def test_decrypt_with_signed_challenge(self, client, alice, machine):
        match_id = await machine.propose(alice.address, ["Web3"], compatibility=85)
        message = (await client.get("/api/v1/challenge")).json()["message"]
        signed = await alice.sign_message(message)

        resp = await client.post(
            f"/api/v1/matches/{match_id}/decrypt",
            json={"public_key": signed.public_key, "signature": signed.signature},
            headers=_auth(alice),
        )
        assert resp.status_code == 200
        assert resp.json() == {
            "match_id": match_id,
            "compatibility": 85,
            "description": "Excellent match!",
        }

    @pytest.mark.asyncio
    async def test_decrypt_after_accept(self, client, alice):
        match_id = await _propose(client, alice)
        await client.post(f"/api/v1/matches/{match_id}/accept", headers=_auth(alice))
        message = (await client.get("/api/v1/challenge")).json()["message"]
        signed = await alice.sign_message(message)

        resp = await client.post(
            f"/api/v1/matches/{match_id}/decrypt",
            json={"public_key": signed.public_key, "signature": signed.signature},
            headers=_auth(alice),
        )
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_signature_over_other_message_forbidden(self, client, alice, machine):
        match_id = await machine.propose(alice.address, ["Web3"])
        signed = await alice.sign_message("not the challenge")

        resp = await client.post(
            f"/api/v1/matches/{match_id}/decrypt",
            json={"public_key": signed.public_key, "signature": signed.signature},
            headers=_auth(alice),
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_someone_elses_signature_forbidden(self, client, alice, bob, machine):
        match_id = await machine.propose(alice.address, ["Web3"])
        message = (await client.get("/api/v1/challenge")).json()["message"]
        signed = await bob.sign_message(message)

        resp = await client.post(
            f"/api/v1/matches/{match_id}/decrypt",
            json={"public_key": signed.public_key, "signature": signed.signature},
            headers=_auth(alice),
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_decrypt_requires_wallet(self, client):
        resp = await client.post(
            "/api/v1/matches/x/decrypt", json={"public_key": "0x", "signature": "0x"},
        )
        assert resp.status_code == 401
