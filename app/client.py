"""
API Client - talks to the REST API the way the browser client does.

    client = UniversityPlatformClient("http://localhost:8000/api")
    page = client.fetch_universities(country="Canada", maxFee=45000)
    print(render_comparison_table(client.compare([a, b, c])))

Any object with requests-style get/post/patch/put methods can be passed
as `session` (e.g. FastAPI's TestClient).
"""

from typing import Iterable, List, Optional

import requests

from app.services.university_service import MAX_COMPARE

COMPARISON_ROWS = [
    ("Country", "country"),
    ("Degree", "degreeLevel"),
    ("Min GPA", "minGPA"),
    ("Min IELTS", "minIELTS"),
    ("Tuition Fee", "tuitionFee"),
    ("Ranking", "ranking"),
    ("Programs", "programs"),
    ("Website", "website"),
]


class ApiError(Exception):
    """Error envelope returned by the API."""

    def __init__(self, status_code: int, body: dict):
        self.status_code = status_code
        self.body = body
        super().__init__(f"{status_code}: {body.get('message', 'request failed')}")


class UniversityPlatformClient:
    """
    Thin wrapper over the /api endpoints.
    Returns the decoded JSON envelope; error envelopes raise ApiError.
    """

    def __init__(self, base_url: str = "http://localhost:8000/api", token: Optional[str] = None,
                 session=None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _request(self, method: str, path: str, **kwargs) -> dict:
        send = getattr(self.session, method)
        if isinstance(self.session, requests.Session):
            kwargs["timeout"] = self.timeout
        response = send(f"{self.base_url}{path}", headers=self._headers(), **kwargs)
        try:
            body = response.json()
        except ValueError:
            body = {"status": "error", "message": response.text}
        if response.status_code >= 400:
            raise ApiError(response.status_code, body)
        return body

    # Universities
    def fetch_universities(self, **params) -> dict:
        return self._request("get", "/universities", params=params)

    def get_university(self, university_id: str) -> dict:
        return self._request("get", f"/universities/{university_id}")["data"]

    def compare(self, university_ids: Iterable[str]) -> List[dict]:
        ids = ",".join(list(university_ids)[:MAX_COMPARE])
        return self._request("get", "/universities/compare", params={"ids": ids})["data"]

    def check_eligibility(self, university_id: str, gpa: float, ielts: float) -> dict:
        body = self._request("post", f"/universities/{university_id}/check-eligibility",
                             json={"gpa": gpa, "ielts": ielts})
        return body["data"]

    # Applications
    def apply_university(self, application: dict) -> dict:
        return self._request("post", "/applications", json=application)

    def fetch_applications(self, **params) -> dict:
        return self._request("get", "/applications", params=params)

    def student_applications(self, email: str) -> List[dict]:
        return self._request("get", f"/applications/student/{email}")["data"]

    # Auth
    def login(self, email: str, password: str) -> dict:
        data = self._request("post", "/users/login", json={"email": email, "password": password})["data"]
        self.token = data["token"]
        return data["user"]


def _cell(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value) or "-"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_comparison_table(universities: List[dict]) -> str:
    """
    Plain-text comparison table: one column per university (at most
    MAX_COMPARE), one row per attribute.
    """
    columns = universities[:MAX_COMPARE]
    header = ["", *(_cell(u.get("name")) for u in columns)]
    rows = [header]
    for label, key in COMPARISON_ROWS:
        rows.append([label, *(_cell(u.get(key)) for u in columns)])

    widths = [max(len(row[i]) for row in rows) for i in range(len(header))]
    lines = []
    for index, row in enumerate(rows):
        lines.append(" | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip())
        if index == 0:
            lines.append("-+-".join("-" * w for w in widths))
    return "\n".join(lines)
