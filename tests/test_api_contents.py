"""
Heritage Numérique Backend — API Tests: Contents, Genealogy, Quizzes
=====================================================================

What:  End-to-end flows that cross several services: the publication
       workflow, multipart media uploads and their download, the family
       tree views, quiz scoring and notifications.

Publication Workflow Under Test:
    family ADMIN requests ─▶ PENDING ─▶ super admin approves ─▶ content PUBLISHED
                                     └▶ super admin rejects  ─▶ content unchanged
"""

import pytest

API = "/api/v1"


async def _join(client, family, register, email, role, first_name="Fanta"):
    _, headers = await register(email, first_name=first_name, last_name="Keita")
    response = await client.post(
        f"{API}/families/{family['id']}/members",
        json={"email": email, "role": role},
        headers=family["admin_headers"],
    )
    assert response.status_code == 201, response.text
    return headers


async def _proverb(client, family, category, headers=None, title="La parole"):
    response = await client.post(
        f"{API}/contents",
        json={
            "family_id": family["id"],
            "category_id": category["id"],
            "title": title,
            "content_type": "PROVERB",
            "proverb_text": "Le mensonge donne des fleurs mais pas de fruits.",
        },
        headers=headers or family["admin_headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()


# ══════════════════════════════════════════════════════════════════════════
# Publication Workflow
# ══════════════════════════════════════════════════════════════════════════

class TestPublicationWorkflow:

    @pytest.mark.asyncio
    async def test_request_approve_publish(self, test_client, family, category, admin_headers, register):
        editor = await _join(test_client, family, register, "editor@example.com", "EDITOR")
        content = await _proverb(test_client, family, category)
        url = f"{API}/contents/{content['id']}/publication-requests"

        assert (await test_client.post(url, headers=editor)).status_code == 403

        requested = await test_client.post(url, headers=family["admin_headers"])
        assert requested.status_code == 201
        request = requested.json()
        assert request["status"] == "PENDING"
        assert request["content_title"] == "La parole"

        assert (await test_client.post(url, headers=family["admin_headers"])).status_code == 400

        pending = (await test_client.get(f"{API}/publication-requests/pending", headers=admin_headers)).json()
        assert [p["id"] for p in pending] == [request["id"]]

        approved = await test_client.post(
            f"{API}/publication-requests/{request['id']}/approve", headers=admin_headers
        )
        assert approved.status_code == 200
        assert approved.json()["status"] == "APPROVED"
        assert approved.json()["processed_at"] is not None

        [public] = (await test_client.get(f"{API}/public/proverbs")).json()
        assert public["id"] == content["id"]
        assert public["family_name"] == "Diarra"
        assert public["author_name"] == "Diarra Moussa"
        assert public["author_role"] == "ADMIN"
        assert public["author_kinship"] == "Founder"
        assert public["category_name"] == "Contes du soir"

        notifications = (await test_client.get(f"{API}/notifications", headers=family["admin_headers"])).json()
        assert "CONTENT_PUBLISHED" in [n["type"] for n in notifications]

        again = await test_client.post(
            f"{API}/publication-requests/{request['id']}/approve", headers=admin_headers
        )
        assert again.status_code == 400

    @pytest.mark.asyncio
    async def test_reject_keeps_content_private(self, test_client, family, category, admin_headers):
        content = await _proverb(test_client, family, category)
        request = (
            await test_client.post(
                f"{API}/contents/{content['id']}/publication-requests", headers=family["admin_headers"]
            )
        ).json()

        rejected = await test_client.post(
            f"{API}/publication-requests/{request['id']}/reject",
            json={"comment": "Merci de préciser l'origine"},
            headers=admin_headers,
        )

        assert rejected.status_code == 200
        assert rejected.json()["status"] == "REJECTED"
        assert rejected.json()["comment"] == "Merci de préciser l'origine"
        assert (await test_client.get(f"{API}/public/proverbs")).json() == []

        private = (
            await test_client.get(f"{API}/families/{family['id']}/contents/private", headers=family["admin_headers"])
        ).json()
        assert [c["id"] for c in private] == [content["id"]]

    @pytest.mark.asyncio
    async def test_members_cannot_review(self, test_client, family, category):
        content = await _proverb(test_client, family, category)
        request = (
            await test_client.post(
                f"{API}/contents/{content['id']}/publication-requests", headers=family["admin_headers"]
            )
        ).json()

        response = await test_client.post(
            f"{API}/publication-requests/{request['id']}/approve", headers=family["admin_headers"]
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_published_status_refused_at_creation(self, test_client, family, category):
        response = await test_client.post(
            f"{API}/contents",
            json={
                "family_id": family["id"],
                "category_id": category["id"],
                "title": "Direct",
                "content_type": "RIDDLE",
                "status": "PUBLISHED",
            },
            headers=family["admin_headers"],
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_family_contents_filtered_by_type(self, test_client, family, category):
        await _proverb(test_client, family, category)

        proverbs = await test_client.get(
            f"{API}/families/{family['id']}/contents",
            params={"type": "PROVERB"},
            headers=family["admin_headers"],
        )
        tales = await test_client.get(
            f"{API}/families/{family['id']}/contents",
            params={"type": "TALE"},
            headers=family["admin_headers"],
        )

        assert len(proverbs.json()) == 1
        assert tales.json() == []


# ══════════════════════════════════════════════════════════════════════════
# Multipart Uploads
# ══════════════════════════════════════════════════════════════════════════

class TestMediaUploads:

    @pytest.mark.asyncio
    async def test_tale_recording_is_stored_and_served(
        self, test_client, family, category, sample_audio_bytes
    ):
        response = await test_client.post(
            f"{API}/contents/tales",
            data={"family_id": family["id"], "category_id": category["id"], "title": "Le roi de Ségou"},
            files={"file": ("conte.mp3", sample_audio_bytes, "audio/mpeg")},
            headers=family["admin_headers"],
        )

        assert response.status_code == 201, response.text
        tale = response.json()
        assert tale["content_type"] == "TALE"
        assert tale["status"] == "DRAFT"
        assert tale["file_url"].startswith("/uploads/tales/")
        assert tale["file_url"].endswith(".mp3")
        assert tale["file_size"] == len(sample_audio_bytes)

        download = await test_client.get(tale["file_url"])
        assert download.status_code == 200
        assert download.content == sample_audio_bytes

    @pytest.mark.asyncio
    async def test_tale_text_without_recording(self, test_client, family, category):
        response = await test_client.post(
            f"{API}/contents/tales",
            data={
                "family_id": family["id"],
                "category_id": category["id"],
                "title": "Le lièvre",
                "tale_text": "Un jour, le lièvre partit au marché.",
            },
            headers=family["admin_headers"],
        )

        assert response.status_code == 201
        assert response.json()["description"] == "Un jour, le lièvre partit au marché."
        assert response.json()["file_url"] is None

    @pytest.mark.asyncio
    async def test_document_refused_for_tale(self, test_client, family, category):
        response = await test_client.post(
            f"{API}/contents/tales",
            data={"family_id": family["id"], "category_id": category["id"], "title": "Scan"},
            files={"file": ("conte.pdf", b"%PDF-1.4 fake", "application/pdf")},
            headers=family["admin_headers"],
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_proverb_with_photo(self, test_client, family, category, sample_image_bytes):
        response = await test_client.post(
            f"{API}/contents/proverbs",
            data={
                "family_id": family["id"],
                "category_id": category["id"],
                "title": "Patience",
                "proverb_text": "Doucement, doucement, l'oiseau fait son nid.",
            },
            files={"photo": ("nid.png", sample_image_bytes, "image/png")},
            headers=family["admin_headers"],
        )

        assert response.status_code == 201
        assert response.json()["photo_url"].startswith("/uploads/images/")

    @pytest.mark.asyncio
    async def test_download_outside_storage_refused(self, test_client):
        response = await test_client.get("/uploads/%2E%2E/%2E%2E/etc/passwd")

        assert response.status_code in (400, 404)


# ══════════════════════════════════════════════════════════════════════════
# Categories
# ══════════════════════════════════════════════════════════════════════════

class TestCategories:

    @pytest.mark.asyncio
    async def test_names_unique_ignoring_case(self, test_client, category, admin_headers):
        response = await test_client.post(
            f"{API}/categories", json={"name": "contes DU soir"}, headers=admin_headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_members_cannot_create(self, test_client, register):
        _, headers = await register("awa@example.com")

        response = await test_client.post(f"{API}/categories", json={"name": "Artisanat"}, headers=headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_category_in_use_cannot_be_deleted(self, test_client, family, category, admin_headers):
        await _proverb(test_client, family, category)

        in_use = await test_client.delete(f"{API}/categories/{category['id']}", headers=admin_headers)
        assert in_use.status_code == 400

        spare = (
            await test_client.post(f"{API}/categories", json={"name": "Artisanat"}, headers=admin_headers)
        ).json()
        assert (await test_client.delete(f"{API}/categories/{spare['id']}", headers=admin_headers)).status_code == 204


# ══════════════════════════════════════════════════════════════════════════
# Translations
# ══════════════════════════════════════════════════════════════════════════

class TestTranslations:

    @pytest.mark.asyncio
    async def test_bambara_translation_of_published_content(self, test_client, category, admin_headers):
        created = await test_client.post(
            f"{API}/contents/public",
            json={
                "category_id": category["id"],
                "title": "Le roi et la famille",
                "description": "Il était une fois un roi",
                "content_type": "TALE",
            },
            headers=admin_headers,
        )
        assert created.status_code == 201
        assert created.json()["status"] == "PUBLISHED"

        response = await test_client.get(
            f"{API}/public/contents/{created.json()['id']}/translations", params={"lang": "bm"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == {"bm": "Le mansa et la denbaya"}
        assert body["description"] == {"bm": "A ka kɛ ka kɛ un mansa"}

    @pytest.mark.asyncio
    async def test_draft_content_is_not_translated(self, test_client, family, category):
        draft = await _proverb(test_client, family, category)

        response = await test_client.get(f"{API}/public/contents/{draft['id']}/translations", params={"lang": "bm"})

        assert response.status_code == 404


# ══════════════════════════════════════════════════════════════════════════
# Genealogy
# ══════════════════════════════════════════════════════════════════════════

async def _tree_member(client, family_id, headers, full_name, birth_date, gender, father=None, mother=None):
    data = {"family_id": family_id, "full_name": full_name, "birth_date": birth_date, "gender": gender}
    if father:
        data["parent1_id"] = father
    if mother:
        data["parent2_id"] = mother
    response = await client.post(f"{API}/genealogy/members", data=data, headers=headers)
    return response


class TestGenealogy:

    @pytest.mark.asyncio
    async def test_hierarchy_and_relatives(self, test_client, family):
        headers = family["admin_headers"]
        seydou = (await _tree_member(test_client, family["id"], headers, "Diarra Seydou", "01/01/1920", "M")).json()
        kadiatou = (
            await _tree_member(test_client, family["id"], headers, "Coulibaly Kadiatou", "1925-05-02", "F")
        ).json()
        amadou = await _tree_member(
            test_client, family["id"], headers, "Diarra Amadou", "12-03-1950", "M",
            father=seydou["id"], mother=kadiatou["id"],
        )
        assert amadou.status_code == 201
        amadou = amadou.json()
        assert amadou["last_name"] == "Diarra"
        assert amadou["first_name"] == "Amadou"
        assert amadou["birth_date"] == "1950-03-12"

        hierarchy = (
            await test_client.get(f"{API}/genealogy/family/{family['id']}/hierarchy", headers=headers)
        ).json()
        assert hierarchy["member_count"] == 3
        assert hierarchy["generation_count"] == 2
        assert hierarchy["main_root_id"] == seydou["id"]
        assert [r["full_name"] for r in hierarchy["roots"]] == ["Diarra Seydou", "Coulibaly Kadiatou"]
        for root in hierarchy["roots"]:
            assert [c["full_name"] for c in root["children"]] == ["Diarra Amadou"]
            assert root["children"][0]["level"] == 1

        relatives = (
            await test_client.get(f"{API}/genealogy/members/{amadou['id']}/relatives", headers=headers)
        ).json()
        assert [m["first_name"] for m in relatives] == ["Seydou", "Kadiatou", "Amadou"]

        tree = (await test_client.get(f"{API}/genealogy/family/{family['id']}", headers=headers)).json()
        assert tree["name"] == "Family tree of Diarra"
        assert [m["first_name"] for m in tree["members"]] == ["Seydou", "Kadiatou", "Amadou"]

    @pytest.mark.asyncio
    async def test_parent_from_another_family(self, test_client, family, register):
        _, other_headers = await register("other@example.com", first_name="Ibrahim", last_name="Touré")
        other_family = (
            await test_client.post(f"{API}/families", json={"name": "Touré"}, headers=other_headers)
        ).json()
        stranger = (
            await _tree_member(test_client, other_family["id"], other_headers, "Touré Ibrahim", "1940-01-01", "M")
        ).json()

        response = await _tree_member(
            test_client, family["id"], family["admin_headers"], "Diarra Oumar", "1980-11-04", "M",
            father=stranger["id"],
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_bad_date_and_reader_refused(self, test_client, family, register):
        bad_date = await _tree_member(
            test_client, family["id"], family["admin_headers"], "Diarra Awa", "March 1950", "F"
        )
        assert bad_date.status_code == 400

        reader = await _join(test_client, family, register, "reader@example.com", "READER")
        refused = await _tree_member(test_client, family["id"], reader, "Diarra Awa", "1950-03-01", "F")
        assert refused.status_code == 403


# ══════════════════════════════════════════════════════════════════════════
# Quizzes and Notifications
# ══════════════════════════════════════════════════════════════════════════

class TestQuizzes:

    @pytest.mark.asyncio
    async def test_quiz_scoring_and_notifications(self, test_client, family, register):
        reader = await _join(test_client, family, register, "reader@example.com", "READER")
        _, outsider = await register("outsider@example.com")
        admin = family["admin_headers"]

        quiz = await test_client.post(
            f"{API}/quizzes",
            json={"family_id": family["id"], "title": "Nos ancêtres", "difficulty": "EASY"},
            headers=admin,
        )
        assert quiz.status_code == 201
        quiz = quiz.json()

        first = (
            await test_client.post(
                f"{API}/quizzes/{quiz['id']}/questions",
                json={
                    "text": "Où est né l'ancêtre?",
                    "points": 2,
                    "propositions": [
                        {"text": "Ségou", "is_correct": True},
                        {"text": "Kayes", "order": 1},
                    ],
                },
                headers=admin,
            )
        ).json()
        second = (
            await test_client.post(
                f"{API}/quizzes/{quiz['id']}/questions",
                json={
                    "text": "Le griot est-il de la famille?",
                    "question_type": "TRUE_FALSE",
                    "order": 1,
                    "propositions": [{"text": "Vrai", "is_correct": True}, {"text": "Faux", "order": 1}],
                },
                headers=admin,
            )
        ).json()
        assert first["propositions"][0]["is_correct"] is True

        questions = (await test_client.get(f"{API}/quizzes/{quiz['id']}/questions", headers=reader)).json()
        assert len(questions) == 2
        for question in questions:
            for proposition in question["propositions"]:
                assert "is_correct" not in proposition

        correct_first = first["propositions"][0]["id"]
        wrong_second = second["propositions"][1]["id"]
        result = await test_client.post(
            f"{API}/quizzes/{quiz['id']}/answers",
            json={"answers": {first["id"]: correct_first, second["id"]: wrong_second}, "elapsed_time": 42},
            headers=reader,
        )
        assert result.status_code == 201
        assert result.json()["score"] == 2
        assert result.json()["max_score"] == 3

        outsider_attempt = await test_client.post(
            f"{API}/quizzes/{quiz['id']}/answers", json={"answers": {}}, headers=outsider
        )
        assert outsider_attempt.status_code == 401

        notifications = (await test_client.get(f"{API}/notifications/unread", headers=reader)).json()
        quiz_notice = next(n for n in notifications if n["type"] == "QUIZ_CREATED")
        assert quiz_notice["metadata"]["quiz_id"] == quiz["id"]

        # someone else's notification looks like a missing one
        foreign = await test_client.put(f"{API}/notifications/{quiz_notice['id']}/read", headers=outsider)
        assert foreign.status_code == 404

        marked = await test_client.put(f"{API}/notifications/{quiz_notice['id']}/read", headers=reader)
        assert marked.status_code == 200
        assert marked.json()["read"] is True

        count = (await test_client.get(f"{API}/notifications/unread/count", headers=reader)).json()
        assert count["count"] == 0

    @pytest.mark.asyncio
    async def test_reader_cannot_create_quiz(self, test_client, family, register):
        reader = await _join(test_client, family, register, "reader@example.com", "READER")

        response = await test_client.post(
            f"{API}/quizzes", json={"family_id": family["id"], "title": "Quiz"}, headers=reader
        )

        assert response.status_code == 403


# ══════════════════════════════════════════════════════════════════════════
# Dashboards
# ══════════════════════════════════════════════════════════════════════════

class TestDashboards:

    @pytest.mark.asyncio
    async def test_statistics_require_superadmin(self, test_client, family, category, admin_headers):
        await _proverb(test_client, family, category)

        denied = await test_client.get(f"{API}/admin/statistics", headers=family["admin_headers"])
        assert denied.status_code == 403

        stats = await test_client.get(f"{API}/admin/statistics", headers=admin_headers)
        assert stats.status_code == 200
        body = stats.json()
        assert body["users"] == 2
        assert body["families"] == 1
        assert body["contents"] == 1
        assert body["published_contents"] == 0
        assert body["categories"] == 1

    @pytest.mark.asyncio
    async def test_personal_dashboard(self, test_client, family, category):
        await _proverb(test_client, family, category)

        response = await test_client.get(f"{API}/dashboard/me", headers=family["admin_headers"])

        assert response.status_code == 200
        body = response.json()
        assert body["family_count"] == 1
        assert body["contents_authored"] == 1

    @pytest.mark.asyncio
    async def test_admin_listings(self, test_client, family, category, admin_headers):
        await _proverb(test_client, family, category)
        for title, content_type in (("Le lièvre et l'hyène", "TALE"), ("Qui suis-je?", "RIDDLE")):
            created = await test_client.post(
                f"{API}/contents/public",
                json={"category_id": category["id"], "title": title, "content_type": content_type},
                headers=admin_headers,
            )
            assert created.status_code == 201

        denied = await test_client.get(f"{API}/admin/families", headers=family["admin_headers"])
        assert denied.status_code == 403

        families = (await test_client.get(f"{API}/admin/families", headers=admin_headers)).json()
        assert [f["name"] for f in families] == ["Diarra"]
        assert families[0]["member_count"] == 1

        platform = (await test_client.get(f"{API}/admin/contents", headers=admin_headers)).json()
        assert sorted(c["content_type"] for c in platform) == ["RIDDLE", "TALE"]
        assert all(c["family_id"] is None for c in platform)

        tales = (
            await test_client.get(f"{API}/admin/contents", params={"type": "TALE"}, headers=admin_headers)
        ).json()
        assert [c["title"] for c in tales] == ["Le lièvre et l'hyène"]


# ══════════════════════════════════════════════════════════════════════════
# Editing
# ══════════════════════════════════════════════════════════════════════════

class TestContentEditing:

    @pytest.mark.asyncio
    async def test_superadmin_edits_platform_content(self, test_client, family, category, admin_headers):
        created = (
            await test_client.post(
                f"{API}/contents/public",
                json={"category_id": category["id"], "title": "Le roi", "content_type": "PROVERB"},
                headers=admin_headers,
            )
        ).json()
        url = f"{API}/contents/{created['id']}"

        denied = await test_client.put(url, json={"title": "Pris"}, headers=family["admin_headers"])
        assert denied.status_code == 403

        response = await test_client.put(
            url,
            json={"title": "  Le roi de Ségou  ", "proverb_meaning": "La patience"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Le roi de Ségou"
        assert body["proverb_meaning"] == "La patience"
        assert body["status"] == "PUBLISHED"
        assert body["content_type"] == "PROVERB"

    @pytest.mark.asyncio
    async def test_family_content_edit_rights(self, test_client, family, category, register):
        editor = await _join(test_client, family, register, "editor@example.com", "EDITOR")
        other = await _join(test_client, family, register, "other@example.com", "EDITOR", first_name="Sidi")
        content = await _proverb(test_client, family, category, headers=editor)
        url = f"{API}/contents/{content['id']}"

        assert (await test_client.put(url, json={"region": "Kayes"}, headers=other)).status_code == 403

        own = await test_client.put(url, json={"region": "Kayes"}, headers=editor)
        assert own.status_code == 200
        assert own.json()["region"] == "Kayes"

        by_admin = await test_client.put(url, json={"location": "Nioro"}, headers=family["admin_headers"])
        assert by_admin.status_code == 200
        assert by_admin.json()["region"] == "Kayes"
        assert by_admin.json()["location"] == "Nioro"

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, test_client, family, category):
        content = await _proverb(test_client, family, category)

        response = await test_client.put(
            f"{API}/contents/{content['id']}", json={"title": "   "}, headers=family["admin_headers"]
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_blank_multipart_title_rejected(self, test_client, family, category):
        response = await test_client.post(
            f"{API}/contents/riddles",
            data={
                "family_id": family["id"],
                "category_id": category["id"],
                "title": "   ",
                "riddle_text": "Qui marche sans pieds?",
            },
            headers=family["admin_headers"],
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        listed = (
            await test_client.get(f"{API}/families/{family['id']}/contents", headers=family["admin_headers"])
        ).json()
        assert listed == []


# ══════════════════════════════════════════════════════════════════════════
# Public Quizzes
# ══════════════════════════════════════════════════════════════════════════

class TestPublicQuizzes:

    @pytest.mark.asyncio
    async def test_public_quizzes_are_listed(self, test_client, family, category, admin_headers):
        riddle = (
            await test_client.post(
                f"{API}/contents/public",
                json={"category_id": category["id"], "title": "Qui suis-je?", "content_type": "RIDDLE"},
                headers=admin_headers,
            )
        ).json()
        created = await test_client.post(
            f"{API}/quizzes/public/{riddle['id']}",
            json={"title": "Devinettes du soir", "difficulty": "EASY"},
            headers=admin_headers,
        )
        assert created.status_code == 201

        family_quiz = await test_client.post(
            f"{API}/quizzes",
            json={"family_id": family["id"], "title": "Nos ancêtres"},
            headers=family["admin_headers"],
        )
        assert family_quiz.status_code == 201

        response = await test_client.get(f"{API}/quizzes/public", headers=family["admin_headers"])

        assert response.status_code == 200
        assert [q["title"] for q in response.json()] == ["Devinettes du soir"]
        assert response.json()[0]["content_id"] == riddle["id"]
