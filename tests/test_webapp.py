"""Tests for the Flask JSON API."""
from __future__ import annotations

import pytest

import webapp
from suggestion_repository import SuggestionRepository

PROMOTIONS = [
    {"id": "miami", "programa": "Smiles", "destino": "Miami", "milhas_min": 20000},
    {"id": "orlando", "programa": "Smiles", "destino": "Orlando", "milhas_min": "8.000"},
    {"id": "tokyo", "programa": "LATAM Pass", "destino": "Tóquio", "milhas_min": 90000},
]


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(webapp, "suggestion_repository", SuggestionRepository(str(tmp_path / "suggestions.db")))
    webapp.app.config["TESTING"] = True
    with webapp.app.test_client() as test_client:
        yield test_client


def test_matches_endpoint_returns_ranked_matches(client) -> None:
    response = client.post(
        "/api/matches",
        json={
            "promotions": PROMOTIONS,
            "goals": [{"id": "g1", "name": "Viagem para Miami", "description": "ou outro lugar nos EUA"}],
            "filters": {"user_miles": "10.000"},
        },
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert [(m["promotion"]["id"], m["match_score"]) for m in payload["matches"]] == [
        ("miami", 100),
        ("orlando", 80),
    ]
    assert payload["best_by_goal"]["g1"]["promotion"]["id"] == "orlando"
    assert "Relatório de promoções" in payload["report"]


def test_matches_endpoint_honours_dismissals(client) -> None:
    response = client.post(
        "/api/matches",
        json={
            "promotions": PROMOTIONS,
            "goals": [{"id": "g1", "name": "Miami e EUA"}],
            "dismissed": ["g1:miami"],
        },
    )

    assert [m["promotion"]["id"] for m in response.get_json()["matches"]] == ["orlando"]


@pytest.mark.parametrize("dismissed", [5, "miami", {"g1": "miami"}])
def test_matches_endpoint_rejects_dismissed_that_is_not_a_list(client, dismissed) -> None:
    response = client.post(
        "/api/matches",
        json={"promotions": PROMOTIONS, "goals": [{"id": "g1", "name": "Miami"}], "dismissed": dismissed},
    )

    assert response.status_code == 400
    assert response.get_json() == {"error": "dismissed must be a list"}


def test_matches_endpoint_rejects_non_object_body(client) -> None:
    response = client.post("/api/matches", data="[]", content_type="application/json")

    assert response.status_code == 400
    assert "error" in response.get_json()


def test_best_promotion_endpoint(client) -> None:
    response = client.post(
        "/api/best-promotion",
        json={"promotions": PROMOTIONS, "goal": {"id": "g1", "name": "Miami"}, "user_miles": 5000},
    )

    assert response.status_code == 200
    assert response.get_json()["match"]["promotion"]["id"] == "miami"

    response = client.post(
        "/api/best-promotion",
        json={"promotions": PROMOTIONS, "goal": {"id": "g2", "name": "Reforma"}, "user_miles": 5000},
    )
    assert response.get_json() == {"match": None}


def test_best_promotion_requires_goal(client) -> None:
    response = client.post("/api/best-promotion", json={"promotions": PROMOTIONS})

    assert response.status_code == 400


def test_suggestion_sync_and_listing(client) -> None:
    response = client.post(
        "/api/suggestions/sync",
        json={
            "promotions": PROMOTIONS,
            "card_rules": [{"user_id": "u1", "bank_name": "Nubank", "existing_miles": 25000}],
            "mileage_programs": [{"user_id": "u2", "program_name": "LATAM", "balance_miles": 1000}],
        },
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["success"] is True
    assert payload["users_processed"] == 2
    assert payload["promotions_available"] == 3
    assert payload["suggestions_created"] == 2
    assert payload["errors_count"] == 0

    listing = client.get("/api/suggestions/u1").get_json()
    assert {item["promotion_id"] for item in listing["suggestions"]} == {"miami", "orlando"}
    assert client.get("/api/suggestions/u2").get_json()["suggestions"] == []

    response = client.post("/api/suggestions/u1/orlando/viewed")
    assert response.status_code == 200
    response = client.post("/api/suggestions/u1/tokyo/viewed")
    assert response.status_code == 404
