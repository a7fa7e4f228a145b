from conftest import PDF_BYTES, auth_header, register


def _freelancer(client, user_name, email, location, **profile):
    token, user = register(
        client, roles=["freelancer"], user_name=user_name, email=email,
        firstName=user_name.title(), location=location,
    )
    files = None
    if profile.pop("with_cv", False):
        files = [("cv", ("cv.pdf", PDF_BYTES, "application/pdf"))]
    response = client.put("/api/freelancer/profile", data=profile, files=files, headers=auth_header(token))
    assert response.status_code == 200, response.text
    return user


def _seed(client):
    return {
        "priya": _freelancer(
            client, "priya", "priya@x.com", "T Nagar, Chennai",
            title="Backend Developer", bio="Python APIs", experience="3-5 years", with_cv=True,
        ),
        "ravi": _freelancer(
            client, "ravi", "ravi@x.com", "Coimbatore",
            title="Data Analyst", bio="Reporting and dashboards", availability="busy",
        ),
        "sara": _freelancer(
            client, "sara", "sara@x.com", "Riyadh",
            title="Mobile Developer", bio="Flutter apps",
        ),
    }


def _search(client, **criteria):
    response = client.post("/api/search/jobseekers", json=criteria)
    assert response.status_code == 200, response.text
    return [c["userName"] for c in response.json()["candidates"]]


def test_job_seeker_search_filters(client):
    _seed(client)

    assert sorted(_search(client)) == ["priya", "ravi", "sara"]
    assert sorted(_search(client, location="Tamil Nadu")) == ["priya", "ravi"]
    assert _search(client, location="madras") == ["priya"]
    assert _search(client, location="KSA") == ["sara"]
    assert _search(client, availability="busy") == ["ravi"]
    assert _search(client, experience="3-5 years") == ["priya"]
    assert _search(client, jobTitle="flutter") == ["sara"]
    assert _search(client, jobTitle="%") == []
    assert _search(client, location="_") == []


def test_title_hits_outrank_bio_hits(client):
    _seed(client)
    _freelancer(client, "zed", "zed@x.com", "Pune", title="Engineer", bio="Developer tooling")

    # Newest first among equal scores
    assert _search(client, jobTitle="developer") == ["sara", "priya", "zed"]


def test_search_excludes_non_freelancers(client, owner):
    _seed(client)
    register(client, user_name="pending", email="p@x.com")
    assert len(_search(client, limit=100)) == 3


def test_search_pagination(client):
    _seed(client)
    assert _search(client, limit=1) == ["sara"]
    assert _search(client, limit=2, offset=1) == ["ravi", "priya"]
    assert client.post("/api/search/jobseekers", json={"limit": 0}).status_code == 400


def test_candidate_detail(client):
    users = _seed(client)
    response = client.get(f"/api/search/candidate/{users['priya']['id']}")
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Backend Developer"
    assert body["location"] == "T Nagar, Chennai"
    assert body["cvFilePath"].endswith(".pdf")

    assert client.get("/api/search/candidate/9999").status_code == 404


def test_candidate_stats(client):
    _seed(client)
    stats = client.get("/api/search/stats").json()
    assert stats == {"totalCandidates": 3, "availableCandidates": 2, "withCv": 1}


def test_professional_categories(client):
    _seed(client)
    body = client.get("/api/search/categories").json()
    counts = {c["name"]: c["count"] for c in body["categories"]}
    assert body["totalProfessionals"] == 3
    assert counts == {"Backend Developer": 1, "Data Analyst": 1, "Mobile Developer": 1}


def test_featured_freelancers_and_equipment(client, owner):
    _seed(client)
    token, _ = owner
    for name in ("Crane", "Loader"):
        client.post(
            "/api/equipment/add",
            json={"equipmentName": name, "equipmentType": "Heavy"},
            headers=auth_header(token),
        )
    client.post(
        "/api/equipment/add",
        json={"equipmentName": "Generator", "equipmentType": "Power", "availability": "on-hire"},
        headers=auth_header(token),
    )

    freelancers = client.get("/api/featured/freelancers").json()
    assert sorted(c["userName"] for c in freelancers["candidates"]) == ["priya", "sara"]

    equipment = client.get("/api/featured/equipment?limit=1").json()
    assert equipment["count"] == 1
    assert equipment["equipment"][0]["equipmentName"] == "Loader"


def test_featured_detail_and_browse_routes(client, owner):
    users = _seed(client)
    token, _ = owner
    crane = client.post(
        "/api/equipment/add",
        json={"equipmentName": "Crane", "equipmentType": "Heavy", "availability": "on-hire"},
        headers=auth_header(token),
    ).json()

    freelancer = client.get(f"/api/featured/freelancers/{users['ravi']['id']}")
    assert freelancer.status_code == 200
    assert freelancer.json()["title"] == "Data Analyst"
    assert client.get("/api/featured/freelancers/9999").status_code == 404

    equipment = client.get(f"/api/featured/equipment/{crane['id']}")
    assert equipment.status_code == 200
    assert equipment.json()["equipmentName"] == "Crane"
    client.delete(f"/api/equipment/{crane['id']}", headers=auth_header(token))
    assert client.get(f"/api/featured/equipment/{crane['id']}").status_code == 404

    # Browsing lists busy freelancers too, unlike the featured list
    page = client.get("/api/featured/freelancers/all", params={"limit": 2, "offset": 1}).json()
    assert [c["userName"] for c in page["candidates"]] == ["ravi", "priya"]
    chennai = client.get("/api/featured/freelancers/all", params={"location": "madras"}).json()
    assert [c["userName"] for c in chennai["candidates"]] == ["priya"]

    assert client.get("/api/featured/equipment/all").json()["count"] == 0


def test_contact_freelancer(client, sent_emails):
    users = _seed(client)
    sent_emails.clear()

    response = client.post(
        "/api/contact/freelancer",
        json={
            "freelancerId": users["ravi"]["id"],
            "recruiterName": "Hannah",
            "recruiterEmail": "hannah@corp.com",
            "company": "Corp <Ltd>",
            "message": "Are you open to a contract?",
        },
    )
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert sent_emails[0]["to"] == "ravi@x.com"
    assert "Corp &lt;Ltd&gt;" in sent_emails[0]["html"]


def test_contact_unknown_freelancer_is_404(client):
    response = client.post(
        "/api/contact/freelancer",
        json={
            "freelancerId": 9999,
            "recruiterName": "Hannah",
            "recruiterEmail": "hannah@corp.com",
            "message": "Hi",
        },
    )
    assert response.status_code == 404
