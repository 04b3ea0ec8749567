"""Integration tests for the compliance API.

The app runs against the seeded store on a VirtualScheduler, so simulated
portal decisions only happen when a test advances the clock.
"""

API = "/api/v1/compliance"


class TestDocumentsApi:

    def test_list_documents(self, client):
        response = client.get(f"{API}/documents")
        assert response.status_code == 200
        assert response.json()["total"] == 15

    def test_filters(self, client):
        by_shipment = client.get(f"{API}/documents", params={"shipment_id": "s_5005"}).json()
        assert by_shipment["total"] == 3

        ready = client.get(f"{API}/documents", params={"status": "ready"}).json()
        assert ready["total"] == 5
        assert all(item["status"] == "ready" for item in ready["items"])

        legacy = client.get(f"{API}/documents", params={"status": "approved"}).json()
        assert legacy["total"] == 0

    def test_get_document(self, client):
        response = client.get(f"{API}/documents/doc_phyto_s5002")
        assert response.status_code == 200
        body = response.json()
        assert body["doc_key"] == "PHYTO"
        assert body["submission"]["tracking_id"] == "ABC-123"
        assert body["form"]["products"][0]["botanical_name"]

    def test_unknown_document(self, client):
        response = client.get(f"{API}/documents/doc_missing")
        assert response.status_code == 404

    def test_request_id_echoed(self, client):
        response = client.get(f"{API}/documents/doc_phyto_s5001", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"


class TestFormAndStatusApi:
    """Test form edits, ready-check and manual status changes"""

    def test_mark_ready_incomplete(self, client):
        response = client.post(f"{API}/documents/doc_ins_s5004/ready")
        assert response.status_code == 409
        assert response.json()["detail"]["missing_fields"] == ["provider", "contact"]

    def test_update_form_then_ready(self, client):
        form = {"policy_number": "POL-1", "provider": "Allianz", "coverage": "Marine", "contact": "ops@allianz.example"}
        response = client.put(f"{API}/documents/doc_ins_s5004/form", json={"form": form})
        assert response.status_code == 200
        assert response.json()["form"]["provider"] == "Allianz"

        response = client.post(f"{API}/documents/doc_ins_s5004/ready", json={"actor": "Sam Finance"})
        assert response.status_code == 200
        assert response.json()["status"] == "ready"
        assert response.json()["timeline"][-1]["actor"] == "Sam Finance"

    def test_form_of_wrong_kind(self, client):
        response = client.put(f"{API}/documents/doc_ins_s5004/form", json={"form": {"transport_mode": "Sea"}})
        assert response.status_code == 422

    def test_set_status_normalizes(self, client):
        response = client.post(f"{API}/documents/doc_coo_s5004/status", json={"status": "approved"})
        assert response.status_code == 200
        assert response.json()["status"] == "signed"

    def test_set_status_conflict(self, client):
        response = client.post(f"{API}/documents/doc_phyto_s5002/status", json={"status": "draft"})
        assert response.status_code == 409

    def test_save_draft(self, client):
        response = client.post(f"{API}/documents/doc_coo_s5001/draft")
        assert response.status_code == 200
        assert response.json()["status"] == "draft"


class TestAttachmentsAndVersionsApi:

    def test_attachment_round_trip(self, client):
        response = client.post(
            f"{API}/documents/doc_coo_s5004/attachments",
            json={"id": "att_inv", "name": "Invoice.pdf", "type": "invoice"},
        )
        assert response.status_code == 201
        assert response.json()["attachments"][-1]["id"] == "att_inv"

        response = client.delete(f"{API}/documents/doc_coo_s5004/attachments/att_inv")
        assert response.status_code == 200
        assert "att_inv" not in [a["id"] for a in response.json()["attachments"]]

        response = client.delete(f"{API}/documents/doc_coo_s5004/attachments/att_inv")
        assert response.status_code == 404

    def test_add_evidence(self, client):
        response = client.post(
            f"{API}/documents/doc_ins_s5004/evidence",
            json={"name": "Quote.pdf", "type": "evidence", "source": "email"},
        )
        assert response.status_code == 201
        assert response.json()["evidence"][-1]["source"] == "email"

    def test_add_timeline_entry(self, client):
        response = client.post(
            f"{API}/documents/doc_ins_s5004/timeline",
            json={"actor": "Broker", "action": "Called insurer"},
        )
        assert response.status_code == 201
        assert response.json()["timeline"][-1]["action"] == "Called insurer"

    def test_versions(self, client):
        response = client.post(
            f"{API}/documents/doc_coo_s5004/versions",
            json={"id": "ver_coo_s5004_v2", "label": "Corrected", "status": "ready"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["versions"][-1]["version"] == 2
        assert body["current_version_id"] == "ver_coo_s5004_v1"

        response = client.put(
            f"{API}/documents/doc_coo_s5004/current-version", json={"version_id": "ver_coo_s5004_v2"}
        )
        assert response.status_code == 200
        assert response.json()["current_version_id"] == "ver_coo_s5004_v2"

    def test_duplicate_version_conflict(self, client):
        response = client.post(
            f"{API}/documents/doc_coo_s5004/versions", json={"id": "ver_coo_s5004_v1", "label": "Again"}
        )
        assert response.status_code == 409

    def test_unknown_current_version(self, client):
        response = client.put(f"{API}/documents/doc_coo_s5004/current-version", json={"version_id": "ver_nope"})
        assert response.status_code == 404


class TestSubmissionApi:
    """Test the submission cycle through the API"""

    def test_submit_and_sign(self, client, scheduler):
        response = client.post(f"{API}/documents/doc_phyto_s5005/submission")
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "submitted"
        assert body["submission"]["tracking_id"].startswith("TRK-")

        scheduler.advance(5200)
        body = client.get(f"{API}/documents/doc_phyto_s5005").json()
        assert body["status"] == "active"
        assert body["submission"]["status"] == "signed"
        assert len(body["versions"]) == 2
        assert body["versions"][-1]["official"] is True

    def test_submit_with_tracking_id(self, client):
        response = client.post(f"{API}/documents/doc_coo_s5005/submission", json={"tracking_id": "COO-900"})
        assert response.status_code == 201
        assert response.json()["submission"]["tracking_id"] == "COO-900"

        response = client.post(f"{API}/documents/doc_ins_s5005/submission", json={"tracking_id": "COO-900"})
        assert response.status_code == 409

    def test_submission_in_flight(self, client):
        response = client.post(f"{API}/documents/doc_phyto_s5002/submission")
        assert response.status_code == 409

    def test_clear_submission(self, client, scheduler):
        client.post(f"{API}/documents/doc_phyto_s5005/submission")
        response = client.delete(f"{API}/documents/doc_phyto_s5005/submission")
        assert response.status_code == 200
        assert response.json()["submission"] is None
        scheduler.advance(10_000)
        assert client.get(f"{API}/documents/doc_phyto_s5005").json()["status"] == "submitted"

    def test_reopen(self, client):
        response = client.post(f"{API}/documents/doc_phyto_s5004/reopen")
        assert response.status_code == 200
        assert response.json()["status"] == "draft"
        assert response.json()["submission"] is None

        response = client.post(f"{API}/documents/doc_phyto_s5005/reopen")
        assert response.status_code == 409

    def test_seeded_submissions_resume_on_startup(self, client, scheduler):
        scheduler.advance(3200)
        body = client.get(f"{API}/documents/doc_coo_s5002").json()
        assert body["status"] == "active"


class TestShipmentsAndReadinessApi:

    def test_list_shipments(self, client):
        body = client.get(f"{API}/shipments").json()
        assert body["total"] == 5
        readiness = {item["shipment"]["id"]: item["readiness"] for item in body["items"]}
        assert readiness["s_5005"] == "ready"
        assert readiness["s_5004"] == "blocked"

    def test_get_shipment(self, client):
        assert client.get(f"{API}/shipments/s_5001").status_code == 200
        assert client.get(f"{API}/shipments/s_9999").status_code == 404

    def test_readiness(self, client):
        body = client.get(f"{API}/readiness").json()
        assert body == {"counts": {"ready": 8, "attention": 4, "blocked": 3}, "total": 15}

        body = client.get(f"{API}/readiness", params={"shipment_id": "s_5005"}).json()
        assert body["counts"]["ready"] == 3

    def test_statuses(self, client):
        statuses = client.get(f"{API}/statuses").json()
        assert [s["status"] for s in statuses][:3] == ["required", "draft", "ready"]
        rejected = next(s for s in statuses if s["status"] == "rejected")
        assert rejected["readiness"] == "blocked"
        assert rejected["label"] == "Rejected"


class TestObservabilityApi:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["documents"] == 15
        assert body["readiness"] == {"ready": 8, "attention": 4, "blocked": 3}
        assert body["mirror_type"] == "MEMORY"

    def test_metrics(self, client):
        client.post(f"{API}/documents/doc_coo_s5004/status", json={"status": "ready"})
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "exportdesk_document_status_changes_total" in response.text

    def test_validation_error_shape(self, client):
        response = client.post(f"{API}/documents/doc_coo_s5004/status", json={})
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_root(self, client):
        assert client.get("/").json()["name"] == "ExportDesk API"
