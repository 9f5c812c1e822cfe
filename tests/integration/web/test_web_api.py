"""Web API 통합 테스트 (임시 파일 DB + TestClient)"""

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from core.config.loader import Settings
from core.constants import APP_VERSION, EnvVars
from core.ledger.errors import (
    ConcurrencyConflict,
    DuplicateVoucherNumber,
    InvalidMerge,
    MergeFailed,
    NotFound,
    OperationCancelled,
    TransactionFailed,
    ValidationError,
)
from web.app import app, status_code_for


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    """임시 DB를 사용하는 TestClient"""
    settings_file = tmp_path / "settings.yaml"
    settings_file.write_text(
        f"db_path: {tmp_path / 'web.db'}\nrecovery:\n  min_days: 30\n  min_group_size: 2\n",
        encoding="utf-8",
    )
    monkeypatch.setenv(EnvVars.SETTINGS_PATH, str(settings_file))
    Settings.reset()

    with TestClient(app) as test_client:
        yield test_client

    Settings.reset()


@pytest.fixture
def seeded(client: TestClient) -> dict[str, int]:
    """회사 1개, 계정 2개"""
    company = client.post(
        "/api/companies",
        json={
            "name": "Focus Transport",
            "financial_year_start": "2024-04-01",
            "financial_year_end": "2025-03-31",
        },
    ).json()
    company_id = company["company_id"]

    first = client.post(
        f"/api/companies/{company_id}/vehicles",
        json={"number": "UP-25C-1234", "description": "Truck A"},
    ).json()
    second = client.post(
        f"/api/companies/{company_id}/vehicles",
        json={"number": "UP-25C-5678"},
    ).json()

    return {
        "company_id": company_id,
        "vehicle_a": first["vehicle_id"],
        "vehicle_b": second["vehicle_id"],
    }


def _post_voucher(client: TestClient, company_id: int, **body) -> dict:
    response = client.post(f"/api/companies/{company_id}/vouchers", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestStatusCodeMapping:
    """원장 예외 → HTTP 상태 코드"""

    @pytest.mark.parametrize(
        "exc, expected",
        [
            (NotFound("vehicle", 1), 404),
            (ValidationError("amount", "bad"), 400),
            (InvalidMerge("same"), 400),
            (DuplicateVoucherNumber(1, 5), 409),
            (ConcurrencyConflict(1, 1), 409),
            (OperationCancelled("stop"), 409),
            (MergeFailed("disk"), 503),
            (TransactionFailed("disk"), 503),
        ],
    )
    def test_mapping(self, exc, expected: int) -> None:
        """예외 유형별 상태 코드"""
        assert status_code_for(exc) == expected


class TestHealth:
    """헬스 체크"""

    def test_health(self, client: TestClient) -> None:
        """버전 포함 ok 응답"""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["version"] == APP_VERSION


class TestCompaniesApi:
    """회사/계정 API"""

    def test_list_and_get(self, client: TestClient, seeded: dict[str, int]) -> None:
        """목록과 단건 조회"""
        companies = client.get("/api/companies").json()
        company = client.get(f"/api/companies/{seeded['company_id']}").json()

        assert [c["name"] for c in companies] == ["Focus Transport"]
        assert company["financial_year_start"] == "2024-04-01"
        assert company["last_voucher_number"] == 0

    def test_unknown_company(self, client: TestClient) -> None:
        """없는 회사는 404"""
        response = client.get("/api/companies/999")

        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_duplicate_vehicle_label(self, client: TestClient, seeded: dict[str, int]) -> None:
        """중복 라벨은 400과 필드 이름"""
        response = client.post(
            f"/api/companies/{seeded['company_id']}/vehicles",
            json={"number": "up-25c-1234"},
        )

        assert response.status_code == 400
        assert response.json()["field"] == "number"

    def test_list_vehicles(self, client: TestClient, seeded: dict[str, int]) -> None:
        """활성 계정 목록"""
        vehicles = client.get(f"/api/companies/{seeded['company_id']}/vehicles").json()

        assert [v["number"] for v in vehicles] == ["UP-25C-1234", "UP-25C-5678"]
        assert vehicles[0]["description"] == "Truck A"


class TestVouchersApi:
    """전표 API"""

    def test_create_and_next_number(self, client: TestClient, seeded: dict[str, int]) -> None:
        """번호 자동 할당 후 다음 번호 증가"""
        company_id = seeded["company_id"]

        voucher = _post_voucher(
            client, company_id,
            vehicle_id=seeded["vehicle_a"], date="2024-04-02", amount="100.5", side="D",
        )
        next_number = client.get(f"/api/companies/{company_id}/next-voucher-number").json()

        assert voucher["voucher_number"] == 1
        assert voucher["amount"] == "100.50"
        assert voucher["side"] == "D"
        assert next_number["next_voucher_number"] == 2

    def test_duplicate_number(self, client: TestClient, seeded: dict[str, int]) -> None:
        """번호 중복은 409"""
        company_id = seeded["company_id"]
        body = {
            "vehicle_id": seeded["vehicle_a"],
            "date": "2024-04-02",
            "amount": "10",
            "side": "D",
            "voucher_number": 5,
        }
        _post_voucher(client, company_id, **body)

        response = client.post(f"/api/companies/{company_id}/vouchers", json=body)

        assert response.status_code == 409
        assert response.json()["error"] == "DuplicateVoucherNumber"

    @pytest.mark.parametrize("amount", ["0", "1e30"])
    def test_invalid_amount(self, client: TestClient, seeded: dict[str, int], amount: str) -> None:
        """0 금액, 정밀도 초과 금액은 400"""
        response = client.post(
            f"/api/companies/{seeded['company_id']}/vouchers",
            json={"vehicle_id": seeded["vehicle_a"], "date": "2024-04-02", "amount": amount, "side": "D"},
        )

        assert response.status_code == 400
        assert response.json()["field"] == "amount"

    def test_update_with_stale_version(self, client: TestClient, seeded: dict[str, int]) -> None:
        """수정 후 이전 버전으로 다시 수정하면 409"""
        voucher = _post_voucher(
            client, seeded["company_id"],
            vehicle_id=seeded["vehicle_a"], date="2024-04-02", amount="10", side="D",
        )
        url = f"/api/vouchers/{voucher['voucher_id']}"

        first = client.put(url, json={"amount": "12", "version": 1})
        second = client.put(url, json={"amount": "13", "version": 1})

        assert first.status_code == 200
        assert first.json()["version"] == 2
        assert second.status_code == 409
        assert client.get(url).json()["amount"] == "12.00"

    def test_delete_and_lookup(self, client: TestClient, seeded: dict[str, int]) -> None:
        """삭제 후 조회는 404"""
        company_id = seeded["company_id"]
        voucher = _post_voucher(
            client, company_id,
            vehicle_id=seeded["vehicle_a"], date="2024-04-02", amount="10", side="C",
            voucher_number=7,
        )

        found = client.get(f"/api/companies/{company_id}/vouchers/by-number/7")
        deleted = client.delete(f"/api/vouchers/{voucher['voucher_id']}")
        missing = client.get(f"/api/vouchers/{voucher['voucher_id']}")

        assert found.json()["voucher_id"] == voucher["voucher_id"]
        assert deleted.status_code == 204
        assert missing.status_code == 404


class TestVehiclesApi:
    """계정 조회/병합 API"""

    def test_balance_and_ledger(self, client: TestClient, seeded: dict[str, int]) -> None:
        """잔액과 원장"""
        company_id, vehicle_id = seeded["company_id"], seeded["vehicle_a"]
        _post_voucher(client, company_id, vehicle_id=vehicle_id, date="2024-01-01", amount="100", side="D")
        _post_voucher(client, company_id, vehicle_id=vehicle_id, date="2024-01-03", amount="40", side="C")

        before = client.get(f"/api/vehicles/{vehicle_id}/balance", params={"as_of": "2024-01-02"}).json()
        after = client.get(f"/api/vehicles/{vehicle_id}/balance", params={"as_of": "2024-01-03"}).json()
        ledger = client.get(
            f"/api/vehicles/{vehicle_id}/ledger",
            params={"start": "2024-01-02", "end": "2024-01-31"},
        ).json()

        assert before["balance"] == "100.00"
        assert after["balance"] == "60.00"
        assert ledger["opening_balance"] == "100.00"
        assert ledger["closing_balance"] == "60.00"
        assert ledger["rows"][0]["credit"] == "40.00"
        assert ledger["vehicle_number"] == "UP-25C-1234"

    def test_ledger_from_min_date(self, client: TestClient, seeded: dict[str, int]) -> None:
        """시작일 0001-01-01은 기초 잔액 0"""
        response = client.get(
            f"/api/vehicles/{seeded['vehicle_a']}/ledger",
            params={"start": "0001-01-01", "end": "2024-01-31"},
        )

        assert response.status_code == 200
        assert response.json()["opening_balance"] == "0.00"

    def test_ledger_start_after_end(self, client: TestClient, seeded: dict[str, int]) -> None:
        """시작일 > 종료일은 400"""
        response = client.get(
            f"/api/vehicles/{seeded['vehicle_a']}/ledger",
            params={"start": "2024-02-01", "end": "2024-01-01"},
        )

        assert response.status_code == 400

    def test_merge_requires_confirm(self, client: TestClient, seeded: dict[str, int]) -> None:
        """confirm 없이 병합하면 400, 아무것도 변경되지 않음"""
        response = client.post(
            "/api/vehicles/merge",
            json={"source_vehicle_id": seeded["vehicle_b"], "target_vehicle_id": seeded["vehicle_a"]},
        )

        assert response.status_code == 400
        vehicles = client.get(f"/api/companies/{seeded['company_id']}/vehicles").json()
        assert len(vehicles) == 2

    def test_merge(self, client: TestClient, seeded: dict[str, int]) -> None:
        """병합 후 target 잔액 = 합계, source는 404"""
        company_id = seeded["company_id"]
        _post_voucher(client, company_id, vehicle_id=seeded["vehicle_a"], date="2024-04-02", amount="100", side="D")
        _post_voucher(client, company_id, vehicle_id=seeded["vehicle_b"], date="2024-04-02", amount="30", side="C")

        response = client.post(
            "/api/vehicles/merge",
            json={
                "source_vehicle_id": seeded["vehicle_a"],
                "target_vehicle_id": seeded["vehicle_b"],
                "confirm": True,
            },
        )
        balance = client.get(
            f"/api/vehicles/{seeded['vehicle_b']}/balance", params={"as_of": "2024-04-30"}
        ).json()
        gone = client.get(f"/api/vehicles/{seeded['vehicle_a']}/balance")

        assert response.status_code == 200
        assert response.json()["moved_vouchers"] == 1
        assert balance["balance"] == "70.00"
        assert gone.status_code == 404

    def test_merge_same_vehicle(self, client: TestClient, seeded: dict[str, int]) -> None:
        """동일 계정 병합은 400"""
        response = client.post(
            "/api/vehicles/merge",
            json={
                "source_vehicle_id": seeded["vehicle_a"],
                "target_vehicle_id": seeded["vehicle_a"],
                "confirm": True,
            },
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidMerge"

    def test_compare(self, client: TestClient, seeded: dict[str, int]) -> None:
        """대사 결과와 미대사만 필터"""
        company_id, vehicle_id = seeded["company_id"], seeded["vehicle_a"]
        _post_voucher(client, company_id, vehicle_id=vehicle_id, date="2024-04-01", amount="500", side="D")
        _post_voucher(client, company_id, vehicle_id=vehicle_id, date="2024-04-05", amount="500", side="C")
        _post_voucher(client, company_id, vehicle_id=vehicle_id, date="2024-04-06", amount="75", side="C")

        full = client.get(f"/api/vehicles/{vehicle_id}/compare").json()
        unmatched = client.get(
            f"/api/vehicles/{vehicle_id}/compare", params={"unmatched_only": True}
        ).json()

        assert len(full["entries"]) == 3
        assert full["unmatched_credits"] == 1
        assert full["summary"] == "0 unmatched debits, 1 unmatched credits"
        assert [e["marker"] for e in unmatched["entries"]] == ["UC"]

    def test_deactivate(self, client: TestClient, seeded: dict[str, int]) -> None:
        """전표 없는 계정 비활성화, 전표 있는 계정은 400"""
        company_id = seeded["company_id"]
        _post_voucher(client, company_id, vehicle_id=seeded["vehicle_a"], date="2024-04-02", amount="1", side="D")

        refused = client.delete(f"/api/vehicles/{seeded['vehicle_a']}")
        removed = client.delete(f"/api/vehicles/{seeded['vehicle_b']}")

        assert refused.status_code == 400
        assert removed.status_code == 204
        vehicles = client.get(f"/api/companies/{company_id}/vehicles").json()
        assert [v["vehicle_id"] for v in vehicles] == [seeded["vehicle_a"]]


class TestReportsApi:
    """보고서 API"""

    def test_trial_balance(self, client: TestClient, seeded: dict[str, int]) -> None:
        """방향별 합계"""
        company_id = seeded["company_id"]
        _post_voucher(client, company_id, vehicle_id=seeded["vehicle_a"], date="2024-04-02", amount="100", side="D")
        _post_voucher(client, company_id, vehicle_id=seeded["vehicle_b"], date="2024-04-02", amount="30", side="C")

        report = client.get(
            f"/api/companies/{company_id}/trial-balance", params={"as_of": "2024-04-30"}
        ).json()

        assert [(line["amount"], line["side"]) for line in report["lines"]] == [
            ("100.00", "D"),
            ("30.00", "C"),
        ]
        assert report["total_debit"] == "100.00"
        assert report["total_credit"] == "30.00"

    def test_day_book(self, client: TestClient, seeded: dict[str, int]) -> None:
        """전표 목록과 일자별 합계"""
        company_id = seeded["company_id"]
        _post_voucher(client, company_id, vehicle_id=seeded["vehicle_a"], date="2024-04-02", amount="100", side="D")
        _post_voucher(client, company_id, vehicle_id=seeded["vehicle_b"], date="2024-04-02", amount="30", side="C")
        params = {"start": "2024-04-01", "end": "2024-04-30"}

        plain = client.get(f"/api/companies/{company_id}/day-book", params=params).json()
        summary = client.get(
            f"/api/companies/{company_id}/day-book", params={**params, "consolidated": True}
        ).json()

        assert [v["voucher_number"] for v in plain["vouchers"]] == [1, 2]
        assert summary["summaries"] == [
            {"date": "2024-04-02", "total_debit": "100.00", "total_credit": "30.00", "net": "70.00"}
        ]

    def test_recovery(self, client: TestClient, seeded: dict[str, int]) -> None:
        """회수 목록 (설정의 min_days 기본값, 그룹 헤더)"""
        company_id = seeded["company_id"]
        _post_voucher(client, company_id, vehicle_id=seeded["vehicle_a"], date="2024-04-02", amount="1000", side="D")
        _post_voucher(client, company_id, vehicle_id=seeded["vehicle_a"], date="2024-06-20", amount="100", side="C")
        _post_voucher(client, company_id, vehicle_id=seeded["vehicle_b"], date="2024-04-02", amount="1000", side="D")
        _post_voucher(client, company_id, vehicle_id=seeded["vehicle_b"], date="2024-05-16", amount="100", side="C")

        flat = client.get(
            f"/api/companies/{company_id}/recovery", params={"as_of": "2024-06-30"}
        ).json()
        grouped = client.get(
            f"/api/companies/{company_id}/recovery",
            params={"as_of": "2024-06-30", "min_days": 0, "grouped": True},
        ).json()

        assert flat["min_days"] == 30
        assert [item["vehicle_id"] for item in flat["items"]] == [seeded["vehicle_b"]]
        assert flat["items"][0]["days_since_last_credit"] == 45
        assert grouped["total_vehicles"] == 2
        assert grouped["groups"][0]["header"] == "═══ UP-25-C VEHICLES ═══"

    def test_recovery_negative_days(self, client: TestClient, seeded: dict[str, int]) -> None:
        """음수 일수는 422 (요청 검증)"""
        response = client.get(
            f"/api/companies/{seeded['company_id']}/recovery", params={"min_days": -1}
        )

        assert response.status_code == 422
