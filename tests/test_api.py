from datetime import datetime, timedelta, timezone

from sqlmodel import select

from netprophet.config import SESSION_COOKIE_NAME
from netprophet.models import Bet, Match, Session as UserSession


def _login(client, token):
    client.cookies.set(SESSION_COOKIE_NAME, token)


def _slip(match_id, amount=100, **prediction):
    return {
        "match_id": match_id,
        "bet_amount": amount,
        "prediction": prediction or {"winner": "Alcaraz", "matchResult": "2-0"},
    }


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_list_matches(client, match):
    response = client.get("/api/matches")
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["title"] == "Alcaraz vs Sinner"
    assert data[0]["player1"] == {"name": "Alcaraz", "odds": 1.85}
    assert data[0]["is_locked"] is False


def test_get_match_not_found(client):
    response = client.get("/api/matches/999")
    assert response.status_code == 404


def test_multiplier_options(client, match):
    response = client.get(f"/api/matches/{match.id}/multiplier-options")
    assert response.status_code == 200
    assert [option["label"] for option in response.json()] == ["1.85x", "1.95x", "2.00x", "2.05x", "2.15x"]


def test_preview_prediction(client, match):
    payload = {
        "winner": "Sinner",
        "matchResult": "2-1",
        "set1Score": "6-4",
        "set2Score": "3-6",
        "set3Score": "7-5",
        "set4Score": "6-0",
        "totalGames": "37",
    }
    response = client.post(f"/api/matches/{match.id}/preview", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["sets_to_show"] == 3
    assert data["set_winners"] == ["Sinner", "Sinner", "Alcaraz"]
    assert data["prediction_count"] == 6
    assert data["multiplier"] == 2.30
    assert data["prediction"]["set4Score"] == ""
    assert data["prediction_text"].startswith("Winner: Sinner | Result: 2-1 | Sets: 6-4, 3-6, 7-5")


def test_preview_without_winner_has_no_multiplier(client, match):
    response = client.post(f"/api/matches/{match.id}/preview", json={"totalGames": "20"})
    assert response.status_code == 200
    assert response.json()["multiplier"] is None


def test_preview_rejects_malformed_result(client, match):
    response = client.post(f"/api/matches/{match.id}/preview", json={"winner": "Sinner", "matchResult": "x"})
    assert response.status_code == 400


def test_place_bet_requires_user(client, match):
    response = client.post("/api/bets", json=_slip(match.id))
    assert response.status_code == 401


def test_place_bet(client, session, match, user, user_token):
    _login(client, user_token)
    response = client.post("/api/bets", json=_slip(match.id))

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "active"
    assert data["multiplier"] == 1.95
    assert data["potential_winnings"] == 195
    assert data["description"] == "Winner: Alcaraz | Result: 2-0"
    session.refresh(user)
    assert user.balance == 900


def test_place_bet_on_locked_match(client, session, match, user_token):
    match.start_time = datetime.now(timezone.utc) - timedelta(hours=1)
    session.add(match)
    session.commit()

    _login(client, user_token)
    response = client.post("/api/bets", json=_slip(match.id))

    assert response.status_code == 400
    assert response.json()["detail"] == "Match is locked for predictions"
    assert session.exec(select(Bet)).all() == []


def test_place_bet_insufficient_funds(client, match, user_token):
    _login(client, user_token)
    response = client.post("/api/bets", json=_slip(match.id, amount=5000))
    assert response.status_code == 402


def test_place_bet_unknown_winner(client, match, user_token):
    _login(client, user_token)
    response = client.post("/api/bets", json=_slip(match.id, winner="Federer"))
    assert response.status_code == 400


def test_place_bet_missing_match(client, user_token):
    _login(client, user_token)
    response = client.post("/api/bets", json=_slip(999))
    assert response.status_code == 404


def test_bet_history_and_stats(client, session, match, user, user_token):
    legacy = Bet(
        user_id=user.id,
        match_id=None,
        prediction="Winner: Nadal | Result: 3-1",
        bet_amount=20,
        multiplier=1.5,
        potential_winnings=30,
        status="won",
        winnings_paid=30,
    )
    session.add(legacy)
    session.commit()

    _login(client, user_token)
    client.post("/api/bets", json=_slip(match.id))

    response = client.get("/api/bets")
    assert response.status_code == 200
    data = response.json()
    assert len(data["active"]) == 1
    assert data["active"][0]["match_title"] == "Alcaraz vs Sinner"
    assert data["resolved"][0]["match_title"] == "Unknown Match"
    assert data["resolved"][0]["prediction"]["winner"] == "Nadal"
    assert data["resolved"][0]["prediction"]["matchResult"] == "3-1"
    assert data["summary"]["total_bets"] == 2
    assert data["summary"]["total_bet_amount"] == 120
    assert data["summary"]["total_winnings_paid"] == 30

    stats = client.get("/api/bets/stats").json()
    assert stats["won_bets"] == 1
    assert stats["active_bets"] == 1
    assert stats["win_rate"] == 100.0


def test_admin_routes_require_admin(client, match, user_token):
    _login(client, user_token)
    response = client.post(f"/admin/matches/{match.id}/cancel")
    assert response.status_code == 403


def test_admin_create_match(client, session, admin_token):
    _login(client, admin_token)
    payload = {
        "player1_name": "Swiatek",
        "player2_name": "Sabalenka",
        "odds_a": 1.6,
        "odds_b": 2.4,
        "match_format": "amateur_super_tiebreak",
        "start_time": (datetime.now(timezone.utc) + timedelta(days=2)).isoformat(),
    }
    response = client.post("/admin/matches", json=payload)

    assert response.status_code == 200
    assert response.json()["match_format"] == "amateur_super_tiebreak"
    assert len(session.exec(select(Match)).all()) == 1


def test_admin_create_match_rejects_odds_below_one(client, admin_token):
    _login(client, admin_token)
    payload = {
        "player1_name": "A",
        "player2_name": "B",
        "odds_a": 0.9,
        "odds_b": 2.0,
        "start_time": datetime.now(timezone.utc).isoformat(),
    }
    response = client.post("/admin/matches", json=payload)
    assert response.status_code == 422


def test_admin_settle_match(client, session, match, user, user_token, admin_token):
    _login(client, user_token)
    bet_id = client.post("/api/bets", json=_slip(match.id)).json()["id"]

    _login(client, admin_token)
    response = client.post(
        f"/admin/matches/{match.id}/settle",
        json={"winner": "Alcaraz", "match_result": "2-0"}
    )

    assert response.status_code == 200
    assert response.json()["won"] == 1
    assert response.json()["winnings_paid"] == 195
    bet = session.get(Bet, bet_id)
    session.refresh(bet)
    assert bet.status == "won"
    session.refresh(user)
    assert user.balance == 1095


def test_admin_cancel_match_refunds(client, session, match, user, user_token, admin_token):
    _login(client, user_token)
    client.post("/api/bets", json=_slip(match.id, amount=300))

    _login(client, admin_token)
    response = client.post(f"/admin/matches/{match.id}/cancel")

    assert response.status_code == 200
    assert response.json()["refunded"] == 300
    session.refresh(user)
    assert user.balance == 1000

    response = client.post(f"/admin/matches/{match.id}/settle", json={"winner": "Alcaraz"})
    assert response.status_code == 409


def test_admin_resolve_bet_twice(client, match, user_token, admin_token):
    _login(client, user_token)
    bet_id = client.post("/api/bets", json=_slip(match.id)).json()["id"]

    _login(client, admin_token)
    first = client.post(f"/admin/bets/{bet_id}/resolve", json={"status": "lost"})
    second = client.post(f"/admin/bets/{bet_id}/resolve", json={"status": "won"})

    assert first.status_code == 200
    assert first.json()["status"] == "lost"
    assert second.status_code == 409


def test_admin_list_bets(client, match, user_token, admin_token):
    _login(client, user_token)
    bet_id = client.post("/api/bets", json=_slip(match.id)).json()["id"]
    client.post("/api/bets", json=_slip(match.id, amount=50))

    _login(client, admin_token)
    client.post(f"/admin/bets/{bet_id}/resolve", json={"status": "cancelled"})
    data = client.get("/admin/bets").json()

    assert len(data["active"]) == 1
    assert len(data["resolved"]) == 1
    assert data["summary"]["total_bet_amount"] == 150
    assert data["summary"]["total_winnings_paid"] == 0


def test_odds_update_keeps_existing_multiplier(client, session, match, user_token, admin_token):
    _login(client, user_token)
    bet_id = client.post("/api/bets", json=_slip(match.id)).json()["id"]

    _login(client, admin_token)
    response = client.patch(f"/admin/matches/{match.id}/odds", json={"odds_a": 3.0, "odds_b": 1.2})

    assert response.status_code == 200
    assert response.json()["player1"]["odds"] == 3.0
    assert session.get(Bet, bet_id).multiplier == 1.95


def test_expired_session_is_rejected(client, session, user, user_token):
    expired = UserSession(
        user_id=user.id,
        session_token="expired-token",
        expires_at=datetime.now(timezone.utc) - timedelta(minutes=1)
    )
    session.add(expired)
    session.commit()

    _login(client, "expired-token")
    assert client.get("/api/bets/stats").status_code == 401

    _login(client, user_token)
    assert client.get("/api/bets/stats").status_code == 200


def test_place_bet_rejects_huge_amount(client, session, match, user, user_token):
    _login(client, user_token)
    response = client.post("/api/bets", json=_slip(match.id, amount=10**20))

    assert response.status_code == 400
    assert session.exec(select(Bet)).all() == []
    session.refresh(user)
    assert user.balance == 1000


def test_odds_update_rejects_infinity(client, match, admin_token):
    _login(client, admin_token)
    response = client.patch(
        f"/admin/matches/{match.id}/odds",
        content='{"odds_a": Infinity, "odds_b": 2.0}',
        headers={"content-type": "application/json"}
    )
    assert response.status_code == 422


def test_admin_settle_finished_match_rejected(client, session, match, user_token, admin_token):
    _login(client, user_token)
    bet_id = client.post("/api/bets", json=_slip(match.id)).json()["id"]

    _login(client, admin_token)
    first = client.post(f"/admin/matches/{match.id}/settle", json={"winner": "Alcaraz", "match_result": "2-0"})
    second = client.post(f"/admin/matches/{match.id}/settle", json={"winner": "Sinner", "match_result": "2-1"})

    assert first.status_code == 200
    assert second.status_code == 409
    session.refresh(match)
    assert match.winner_name == "Alcaraz"
    assert match.match_result == "2-0"
    bet = session.get(Bet, bet_id)
    session.refresh(bet)
    assert bet.status == "won"


def test_bet_history_is_paginated(client, match, user_token):
    _login(client, user_token)
    for amount in (10, 20, 30):
        client.post("/api/bets", json=_slip(match.id, amount=amount))

    first = client.get("/api/bets", params={"page": 1, "limit": 2}).json()
    second = client.get("/api/bets", params={"page": 2, "limit": 2}).json()

    assert first["total"] == 3
    assert [item["bet_amount"] for item in first["active"]] == [30, 20]
    assert [item["bet_amount"] for item in second["active"]] == [10]
    assert second["summary"]["total_bets"] == 3
    assert client.get("/api/bets", params={"limit": 0}).status_code == 422


def test_admin_list_bets_is_paginated(client, match, user_token, admin_token):
    _login(client, user_token)
    for amount in (10, 20, 30):
        client.post("/api/bets", json=_slip(match.id, amount=amount))

    _login(client, admin_token)
    data = client.get("/admin/bets", params={"page": 2, "limit": 2}).json()

    assert data["total"] == 3
    assert data["page"] == 2
    assert len(data["active"]) == 1
    assert data["summary"]["total_bet_amount"] == 60


def test_bet_stats_include_total_losses(client, session, match, user_token, admin_token):
    _login(client, user_token)
    bet_id = client.post("/api/bets", json=_slip(match.id, amount=40)).json()["id"]
    client.post("/api/bets", json=_slip(match.id, amount=60))

    _login(client, admin_token)
    client.post(f"/admin/bets/{bet_id}/resolve", json={"status": "lost"})

    _login(client, user_token)
    stats = client.get("/api/bets/stats").json()
    assert stats["total_losses"] == 40
    assert stats["lost_bets"] == 1
