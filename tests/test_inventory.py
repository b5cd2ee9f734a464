"""
Asset inventory, playbook and compliance framework tests
"""
import pytest
from httpx import AsyncClient

from socdash.api.v1.schemas.inventory import AssetFilter
from socdash.db.crud import inventory
from socdash.db.models import Playbook
from socdash.db.models.enums import AssetType, AssetCriticality
from socdash.exceptions.errors import ValidationError


@pytest.fixture
async def assets(db_session):
    drafts = [
        {"name": "Web Server 01", "ip_address": "192.168.1.10", "asset_type": "Server",
         "operating_system": "Ubuntu 20.04", "criticality": "Critical", "owner": "IT Team"},
        {"name": "Employee Laptop", "ip_address": "192.168.2.15", "asset_type": "Endpoint",
         "operating_system": "Windows 11", "criticality": "Medium", "owner": "Workplace IT"},
        {"name": "Core Switch", "ip_address": "192.168.1.1", "asset_type": "Network Device",
         "operating_system": "Cisco IOS", "criticality": "High", "owner": "Network Team"},
        {"name": "Database Server", "ip_address": "192.168.1.20", "asset_type": "Server",
         "operating_system": "CentOS 8", "criticality": "Critical", "owner": "DBA Team"},
        {"name": "Badge Reader", "ip_address": "10.9.0.4", "asset_type": "Endpoint",
         "criticality": "Low", "owner": "Facilities"},
    ]
    return [await inventory.create_asset(db_session, draft) for draft in drafts]


class TestAssets:

    async def test_most_critical_first_then_name(self, db_session, assets):
        listed = await inventory.list_assets(db_session)

        assert [a.name for a in listed] == [
            "Database Server", "Web Server 01", "Core Switch", "Employee Laptop", "Badge Reader"
        ]

    async def test_filters_are_and_combined(self, db_session, assets):
        servers = await inventory.list_assets(db_session, AssetFilter(asset_type=AssetType.SERVER))
        critical_dba = await inventory.list_assets(
            db_session, AssetFilter(criticality=AssetCriticality.CRITICAL, owner="dba")
        )

        assert {a.name for a in servers} == {"Web Server 01", "Database Server"}
        assert [a.name for a in critical_dba] == ["Database Server"]

    async def test_search_covers_name_address_and_os(self, db_session, assets):
        by_os = await inventory.list_assets(db_session, AssetFilter(search="windows"))
        by_ip = await inventory.list_assets(db_session, AssetFilter(search="10.9."))
        by_name = await inventory.list_assets(db_session, AssetFilter(search="switch"))

        assert [a.name for a in by_os] == ["Employee Laptop"]
        assert [a.name for a in by_ip] == ["Badge Reader"]
        assert [a.name for a in by_name] == ["Core Switch"]

    async def test_inactive_assets_are_hidden(self, db_session, assets):
        retired = assets[0]
        retired.is_active = False
        await db_session.commit()

        listed = await inventory.list_assets(db_session)

        assert retired.id not in {a.id for a in listed}
        assert len(listed) == 4

    async def test_invalid_asset_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await inventory.create_asset(
                db_session, {"name": "Printer", "asset_type": "Printer", "criticality": "Low"}
            )
        with pytest.raises(ValidationError):
            await inventory.create_asset(
                db_session,
                {"name": "Printer", "asset_type": "Endpoint", "criticality": "Low", "ip_address": "999.1.1.1"}
            )


class TestPlaybooks:

    async def test_author_name_and_order(self, db_session, analyst_user):
        first = await inventory.create_playbook(
            db_session,
            {"name": "Malware Detection Response", "incident_type": "Malware",
             "steps": ["Isolate affected system", "Collect forensic evidence"]},
            created_by=analyst_user.id,
        )
        second = await inventory.create_playbook(
            db_session, {"name": "Data Breach Response", "steps": ["Contain the breach"]}, created_by=404
        )

        rows = await inventory.list_playbooks(db_session)

        assert [(p.id, name) for p, name in rows] == [(second.id, None), (first.id, "analyst")]
        assert rows[1][0].steps == ["Isolate affected system", "Collect forensic evidence"]

    async def test_inactive_playbooks_are_hidden(self, db_session):
        db_session.add(Playbook(name="Retired", steps=[], is_active=False))
        await db_session.commit()

        assert await inventory.list_playbooks(db_session) == []


class TestCompliance:

    @pytest.mark.parametrize("passed,total,expected", [
        (10, 12, 83.33),
        (98, 114, 85.96),
        (7, 8, 87.5),
        (0, 0, 0.0),
    ])
    def test_percentage(self, passed, total, expected):
        assert inventory.compliance_percentage(passed, total) == expected

    async def test_frameworks_sorted_by_name(self, db_session):
        await inventory.create_compliance_framework(
            db_session, {"name": "SOX", "total_controls": 8, "passed_controls": 7, "failed_controls": 1}
        )
        await inventory.create_compliance_framework(
            db_session, {"name": "HIPAA", "total_controls": 18, "passed_controls": 15, "failed_controls": 3}
        )

        frameworks = await inventory.list_compliance_frameworks(db_session)

        assert [f.name for f in frameworks] == ["HIPAA", "SOX"]
        assert frameworks[1].compliance_percentage == 87.5

    async def test_control_counts_must_fit_total(self, db_session):
        with pytest.raises(ValidationError):
            await inventory.create_compliance_framework(
                db_session, {"name": "PCI DSS", "total_controls": 5, "passed_controls": 4, "failed_controls": 3}
            )
        assert await inventory.list_compliance_frameworks(db_session) == []


class TestInventoryEndpoints:

    async def test_assets_endpoint_with_camel_case_filter(self, client: AsyncClient, analyst_headers, assets):
        response = await client.get("/api/v1/assets/", params={"assetType": "Server"}, headers=analyst_headers)

        assert response.status_code == 200
        assert [a["name"] for a in response.json()] == ["Database Server", "Web Server 01"]
        assert response.json()[0]["criticality"] == "Critical"

    async def test_playbooks_endpoint_includes_author(self, client: AsyncClient, analyst_headers,
                                                      db_session, analyst_user):
        await inventory.create_playbook(
            db_session, {"name": "Phishing Triage", "steps": ["Pull message headers"]}, created_by=analyst_user.id
        )

        response = await client.get("/api/v1/playbooks/", headers=analyst_headers)

        assert response.status_code == 200
        assert response.json()[0]["created_by_name"] == "analyst"
        assert response.json()[0]["steps"] == ["Pull message headers"]

    async def test_compliance_endpoint(self, client: AsyncClient, analyst_headers, db_session):
        await inventory.create_compliance_framework(
            db_session, {"name": "ISO 27001", "total_controls": 114, "passed_controls": 98, "failed_controls": 16}
        )

        response = await client.get("/api/v1/compliance/", headers=analyst_headers)

        assert response.status_code == 200
        assert response.json()[0]["compliance_percentage"] == 85.96

    async def test_inventory_requires_a_principal(self, client: AsyncClient):
        for path in ("/api/v1/assets/", "/api/v1/playbooks/", "/api/v1/compliance/"):
            assert (await client.get(path)).status_code == 401
