"""Unit tests for the export API endpoint."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient
from utils.factories import ExportRequestFactory
from utils.profiles import (
    BF,
    INSTANCE_RT,
    ITEM_RT,
    MADSRDF,
    RDFS,
    WORK_RT,
    instance_rt,
    item_rt,
    monograph_profile,
    profile,
    pt,
    work_rt,
)

from bibframe_api.clients.error_report_client import ErrorReportClient
from bibframe_api.core.dependencies import get_export_service
from bibframe_api.handlers.export import to_response
from bibframe_api.main import app
from bibframe_api.services.domain.rdf_xml.admin_metadata import AdminMetadataSynthesizer
from bibframe_api.services.domain.rdf_xml.builder import ProfileXmlBuilder
from bibframe_api.services.domain.rdf_xml.serializer import XmlBuildResult
from bibframe_api.services.export_service import ExportService


def offline_builder(context):
    synthesizer = AdminMetadataSynthesizer(
        cataloger_code=context.cataloger_code,
        clock=lambda: datetime(2026, 3, 1, tzinfo=timezone.utc),
    )
    return ProfileXmlBuilder(synthesizer=synthesizer, context=context)


@pytest.mark.unit
class TestExportEndpoint:
    """Test suite for POST /api/export."""

    @pytest.fixture
    def reporter(self):
        return AsyncMock(spec=ErrorReportClient)

    @pytest.fixture
    def service(self, reporter):
        return ExportService(builder_factory=offline_builder, dev_mode=False, error_reporter=reporter)

    @pytest.fixture
    def client(self, service):
        """Create test client with the export service overridden."""
        app.dependency_overrides[get_export_service] = lambda: service
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_export_returns_all_documents(self, client):
        """Test a monograph profile compiles into every output field."""
        # Arrange
        payload = ExportRequestFactory(catalogerCode="jdoe", catalogerInitials="JD").model_dump()

        # Act
        response = client.post("/api/export", json=payload)

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["xlmString"].startswith("<rdf:RDF")
        assert "<bf:Instance" in data["xmlStringFormatted"]
        assert "<bf:Work" in data["xlmStringBasic"]
        assert "<bf:Work" in data["bf2Marc"]
        assert data["voidTitle"] == "Moby Dick"
        assert "<lclocal:user>JD (jdoe)</lclocal:user>" in data["xlmString"]
        assert "lc:RT:bf2:Monograph:Work-title" in data["componentXmlLookup"]

    def test_focused_barcode_passed_to_build(self, client, service):
        """Test request values reach the build context."""
        # Arrange
        build = Mock(wraps=offline_builder)
        service.builder_factory = build

        # Act
        response = client.post("/api/export", json={"profile": monograph_profile(), "focusedBarcode": "39031"})

        # Assert
        assert response.status_code == 200
        assert build.call_args.args[0].focused_barcode == "39031"

    def test_request_lookup_data_reaches_build(self, client):
        """Test template lookup data and location labels from the request label the Item."""
        # Arrange
        policy = {"@type": f"{BF}AccessPolicy", f"{RDFS}label": [{"@id": "local:vault"}]}
        item = item_rt(
            barcode="39031031234567",
            location=pt(f"{BF}physicalLocation", {"@id": "alma:library:VanPeltLib"}),
            policy=pt(f"{BF}usageAndAccessPolicy", policy),
        )
        vault = {"@id": "local:vault", f"{MADSRDF}authoritativeLabel": [{"@value": "Vault only"}]}
        policy_template = {
            "propertyURI": f"{BF}usageAndAccessPolicy",
            "valueConstraint": {"useValuesFrom": [{"data": [vault]}]},
        }
        payload = ExportRequestFactory(
            profile=profile({WORK_RT: work_rt(), INSTANCE_RT: instance_rt(), ITEM_RT: item}),
            templateProfiles={"lc:profile:bf2:Item": {"rt": {ITEM_RT: {"pt": {"policy": policy_template}}}}},
            locationLabels={"alma:library:VanPeltLib": "Van Pelt Library"},
        ).model_dump()

        # Act
        response = client.post("/api/export", json=payload)

        # Assert
        assert response.status_code == 200
        xml = response.json()["xlmStringBasic"]
        assert "<bf:AccessPolicy><rdfs:label>Vault only</rdfs:label></bf:AccessPolicy>" in xml
        assert "<bf:physicalLocation>Van Pelt Library</bf:physicalLocation>" in xml

    def test_request_lookup_data_optional(self, client):
        """Test a request without lookup data labels the location by its last segment."""
        item = item_rt(location=pt(f"{BF}physicalLocation", {"@id": "alma:library:VanPeltLib"}))
        payload = {"profile": profile({WORK_RT: work_rt(), INSTANCE_RT: instance_rt(), ITEM_RT: item})}

        response = client.post("/api/export", json=payload)

        assert response.status_code == 200
        assert "<bf:physicalLocation>VanPeltLib</bf:physicalLocation>" in response.json()["xlmStringBasic"]

    def test_empty_profile_returns_empty_documents(self, client):
        """Test a profile with nothing to export is still a success."""
        response = client.post("/api/export", json={"profile": {}})

        assert response.status_code == 200
        assert response.json()["xlmString"] == "<rdf:RDF/>"

    def test_failed_build_returns_500(self, client, service, reporter):
        """Test a recovered build failure maps to a server error."""
        # Arrange
        service.builder_factory = Mock(side_effect=RuntimeError("builder exploded"))

        # Act
        response = client.post("/api/export", json={"profile": monograph_profile()})

        # Assert
        assert response.status_code == 500
        assert "reported" in response.json()["detail"]
        reporter.report.assert_awaited_once()

    def test_missing_profile_rejected(self, client):
        """Test request validation requires a profile."""
        response = client.post("/api/export", json={"catalogerCode": "jdoe"})

        assert response.status_code == 422

    def test_to_response_field_names(self):
        """Test the response keeps the editor's payload field names."""
        response = to_response(XmlBuildResult.empty())

        assert set(response.model_dump()) == {
            "xmlStringFormatted", "xlmString", "bf2Marc", "xlmStringBasic",
            "voidTitle", "voidContributor", "componentXmlLookup",
        }


@pytest.mark.unit
class TestServiceEndpoints:
    """Test suite for health and header behavior."""

    @pytest.fixture
    def client(self):
        return TestClient(app)

    def test_healthz(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["uptime"] >= 0

    def test_version_header(self, client):
        response = client.get("/healthz")

        assert "X-API-Version" in response.headers
