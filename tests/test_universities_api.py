from bson import ObjectId


def names(response):
    return [u["name"] for u in response.json()["data"]]


# ------------------------------------------------------------
# listing
# ------------------------------------------------------------

def test_list_filters_by_fee_and_sorts(client, make_university):
    make_university(name="Cheap", tuitionFee=3000)
    make_university(name="Middle", tuitionFee=30000)
    make_university(name="Pricey", tuitionFee=52000)

    response = client.get("/api/universities", params={"maxFee": 40000, "sort": "tuitionFee", "order": "desc"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert names(response) == ["Middle", "Cheap"]
    assert body["total"] == 2
    assert body["currentPage"] == 1


def test_default_fee_range_hides_expensive_universities(client, make_university):
    make_university(name="Affordable", tuitionFee=50000)
    make_university(name="Expensive", tuitionFee=50001)
    assert names(client.get("/api/universities")) == ["Affordable"]


def test_list_country_degree_and_search(client, make_university):
    make_university(name="Toronto", country="Canada", degreeLevel="Masters", programs=["Law"])
    make_university(name="UBC", country="Canada", degreeLevel="Bachelors", programs=["Forestry"])
    make_university(name="Oxford", country="UK", degreeLevel="Masters", programs=["Law"])

    assert names(client.get("/api/universities", params={"country": "Canada", "degree": "Masters"})) == ["Toronto"]
    assert names(client.get("/api/universities", params={"search": "forest"})) == ["UBC"]
    assert len(client.get("/api/universities", params={"country": "All"}).json()["data"]) == 3


def test_list_pagination(client, make_university):
    for index in range(5):
        make_university(name=f"University {index}")

    body = client.get("/api/universities", params={"page": 2, "limit": 2}).json()
    assert [u["name"] for u in body["data"]] == ["University 2", "University 3"]
    assert body["count"] == 2
    assert body["total"] == 5
    assert body["totalPages"] == 3
    assert body["hasNextPage"] is True
    assert body["hasPrevPage"] is True


def test_list_gpa_range_applies_to_minimums(client, make_university):
    make_university(name="Strict", minGPA=3.8)
    make_university(name="Relaxed", minGPA=2.8)
    assert names(client.get("/api/universities", params={"maxGPA": 3.0})) == ["Relaxed"]


# ------------------------------------------------------------
# details
# ------------------------------------------------------------

def test_get_university_details(client, make_university, db):
    main = make_university(name="Main")
    make_university(name="Sibling")
    make_university(name="Elsewhere", country="UK")
    db.applications.insert_one({"universityId": main["_id"], "email": "a@example.com"})

    response = client.get(f"/api/universities/{main['_id']}")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["_id"] == str(main["_id"])
    assert data["applicationCount"] == 1
    assert [u["name"] for u in data["similarUniversities"]] == ["Sibling"]


def test_get_unknown_university_is_404(client):
    response = client.get(f"/api/universities/{ObjectId()}")
    assert response.status_code == 404
    assert response.json() == {"status": "error", "message": "University not found"}


def test_get_malformed_id_is_400(client):
    response = client.get("/api/universities/not-an-id")
    assert response.status_code == 400
    assert response.json()["status"] == "error"


# ------------------------------------------------------------
# compare
# ------------------------------------------------------------

def test_compare_keeps_requested_order(client, make_university):
    first = make_university(name="First")
    second = make_university(name="Second")

    response = client.get("/api/universities/compare", params={"ids": f"{second['_id']},{first['_id']}"})
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert names(response) == ["Second", "First"]
    assert set(body["data"][0]) >= {"minGPA", "minIELTS", "tuitionFee", "programs"}


def test_compare_requires_two(client, make_university):
    only = make_university()
    response = client.get("/api/universities/compare", params={"ids": str(only["_id"])})
    assert response.status_code == 400
    assert response.json()["message"] == "At least 2 universities are required for comparison"

    missing = client.get("/api/universities/compare")
    assert missing.status_code == 400
    assert missing.json()["message"] == "University IDs are required for comparison"


def test_compare_uses_first_five(client, make_university):
    ids = [str(make_university(name=f"U{index}")["_id"]) for index in range(7)]
    response = client.get("/api/universities/compare", params={"ids": ",".join(ids)})
    assert response.status_code == 200
    assert names(response) == ["U0", "U1", "U2", "U3", "U4"]


# ------------------------------------------------------------
# eligibility
# ------------------------------------------------------------

def test_check_eligibility(client, make_university):
    university = make_university(name="Imperial", minGPA=3.5, minIELTS=7.0)

    ok = client.post(f"/api/universities/{university['_id']}/check-eligibility", json={"gpa": 3.5, "ielts": 7.0})
    assert ok.status_code == 200
    data = ok.json()["data"]
    assert data["isEligible"] is True
    assert data["reasons"] == ["All requirements met"]
    assert data["university"] == {"name": "Imperial", "minGPA": 3.5, "minIELTS": 7.0}

    low = client.post(f"/api/universities/{university['_id']}/check-eligibility", json={"gpa": 3.0, "ielts": 7.5})
    data = low.json()["data"]
    assert data["isEligible"] is False
    assert data["reasons"] == ["Your GPA (3) is below the minimum requirement (3.5)"]
    assert data["suggestions"]


def test_check_eligibility_requires_scores(client, make_university):
    university = make_university()
    response = client.post(f"/api/universities/{university['_id']}/check-eligibility", json={"gpa": 3.5})
    assert response.status_code == 400
    assert response.json()["message"] == "Validation error"
    assert any(error.startswith("ielts") for error in response.json()["errors"])


# ------------------------------------------------------------
# admin operations
# ------------------------------------------------------------

UNIVERSITY_PAYLOAD = {
    "name": "  New University ",
    "country": "Germany",
    "degreeLevel": "Masters",
    "programs": ["Informatics"],
    "minGPA": 3.0,
    "minIELTS": 6.5,
    "tuitionFee": 3000,
    "intakeSeasons": ["Fall", "Spring"],
    "website": "https://www.example.com"
}


def test_create_requires_admin(client, reviewer_headers):
    assert client.post("/api/universities", json=UNIVERSITY_PAYLOAD).status_code == 401
    assert client.post("/api/universities", json=UNIVERSITY_PAYLOAD, headers=reviewer_headers).status_code == 401


def test_create_university(client, admin_headers, db):
    response = client.post("/api/universities", json=UNIVERSITY_PAYLOAD, headers=admin_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "University created successfully"
    assert body["data"]["name"] == "New University"
    assert body["data"]["isActive"] is True

    stored = db.universities.find_one({"_id": ObjectId(body["data"]["_id"])})
    assert stored["minGPA"] == 3.0
    assert stored["intakeSeasons"] == ["Fall", "Spring"]


def test_create_validates_ranges(client, admin_headers):
    payload = dict(UNIVERSITY_PAYLOAD, minGPA=4.5, degreeLevel="Associate")
    response = client.post("/api/universities", json=payload, headers=admin_headers)
    assert response.status_code == 400
    errors = response.json()["errors"]
    assert any(error.startswith("minGPA") for error in errors)
    assert any(error.startswith("degreeLevel") for error in errors)


def test_update_university(client, admin_headers, make_university):
    university = make_university(tuitionFee=30000)
    response = client.put(f"/api/universities/{university['_id']}", json={"tuitionFee": 25000},
                          headers=admin_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["tuitionFee"] == 25000
    assert data["name"] == university["name"]


def test_soft_delete_hides_university_but_keeps_applications(
        client, admin_headers, reviewer_headers, make_university, application_payload, db):
    university = make_university(minGPA=3.0, minIELTS=6.5)
    submitted = client.post("/api/applications", json=application_payload(university["_id"]))
    assert submitted.status_code == 201
    application_id = submitted.json()["data"]["_id"]

    response = client.delete(f"/api/universities/{university['_id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "University deleted successfully"
    assert db.universities.find_one({"_id": university["_id"]})["isActive"] is False

    assert client.get(f"/api/universities/{university['_id']}").status_code == 404
    assert client.get("/api/universities").json()["total"] == 0
    assert client.delete(f"/api/universities/{university['_id']}", headers=admin_headers).status_code == 404

    application = client.get(f"/api/applications/{application_id}", headers=reviewer_headers)
    assert application.status_code == 200
    assert application.json()["data"]["university"]["name"] == university["name"]


def test_university_stats(client, admin_headers, make_university):
    make_university(country="Canada", tuitionFee=40000, degreeLevel="Masters")
    make_university(country="Canada", tuitionFee=20000, degreeLevel="Bachelors")
    make_university(country="UK", tuitionFee=30000, degreeLevel="Masters")
    make_university(country="UK", tuitionFee=99000, isActive=False)

    assert client.get("/api/universities/stats/overview").status_code == 401

    data = client.get("/api/universities/stats/overview", headers=admin_headers).json()["data"]
    assert data["overview"]["totalUniversities"] == 3
    assert data["overview"]["averageTuition"] == 30000
    assert data["overview"]["maxTuition"] == 40000
    assert data["byCountry"][0] == {"_id": "Canada", "count": 2}
    assert {row["_id"]: row["count"] for row in data["byDegree"]} == {"Masters": 2, "Bachelors": 1}


def test_update_rejects_null_for_required_fields(client, admin_headers, make_university, db):
    university = make_university(name="Oxford", minGPA=3.6)
    url = f"/api/universities/{university['_id']}"

    response = client.put(url, json={"minGPA": None, "name": None}, headers=admin_headers)
    assert response.status_code == 400
    errors = response.json()["errors"]
    assert any(error.startswith("minGPA") for error in errors)
    assert any(error.startswith("name") for error in errors)

    stored = db.universities.find_one({"_id": university["_id"]})
    assert stored["minGPA"] == 3.6
    assert stored["name"] == "Oxford"

    eligibility = client.post(f"{url}/check-eligibility", json={"gpa": 3.7, "ielts": 7.0})
    assert eligibility.status_code == 200
    assert eligibility.json()["data"]["isEligible"] is True


def test_update_allows_clearing_optional_fields(client, admin_headers, make_university, db):
    university = make_university(city="Toronto")
    response = client.put(f"/api/universities/{university['_id']}", json={"city": None}, headers=admin_headers)
    assert response.status_code == 200
    assert db.universities.find_one({"_id": university["_id"]})["city"] is None


def test_update_strips_text_like_create(client, admin_headers, make_university, db):
    university = make_university()
    response = client.put(f"/api/universities/{university['_id']}",
                          json={"name": "  Oxford  ", "programs": [" Law ", "Physics "]}, headers=admin_headers)
    assert response.status_code == 200
    stored = db.universities.find_one({"_id": university["_id"]})
    assert stored["name"] == "Oxford"
    assert stored["programs"] == ["Law", "Physics"]
