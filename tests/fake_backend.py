"""In-process stand-in for the portal REST backend, served through ASGITransport."""

import json
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from fastapi import Body, FastAPI, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response


@dataclass
class BackendState:
    users: list[dict[str, Any]] = field(default_factory=list)
    passwords: dict[str, str] = field(default_factory=dict)
    first_login: set[str] = field(default_factory=set)
    assessments: list[dict[str, Any]] = field(default_factory=list)
    results: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    examiner_stats: dict[str, Any] = field(default_factory=dict)
    created_forms: list[dict[str, Any]] = field(default_factory=list)

    # "METHOD /path" -> (status, body); a str body is sent as text/plain
    failures: dict[str, tuple[int, Any]] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    def add_user(
        self,
        user_id: str,
        name: str,
        role: str,
        *,
        password: str = "secret123",
        first_login: bool = False,
        email: str | None = None,
    ) -> dict[str, Any]:
        email = email or f"{name.split()[0].lower()}@example.com"
        user = {
            "id": user_id,
            "name": name,
            "email": email,
            "role": role,
            "created_at": "2025-01-05T09:30:00Z",
        }
        self.users.append(user)
        self.passwords[email] = password
        if first_login:
            self.first_login.add(user_id)
        return user


def seeded_state() -> BackendState:
    state = BackendState()
    state.add_user("admin-1", "Ada Admin", "admin")
    state.add_user("exam-1", "Eve Examiner", "examiner")
    state.add_user("cand-1", "Cara Candidate", "candidate")
    state.add_user("cand-2", "Cole Newcomer", "candidate", first_login=True)

    for index in range(1, 7):
        state.assessments.append(
            {
                "id": f"asm-{index}",
                "title": f"Assessment {index}",
                "description": f"Round {index}",
                "created_at": f"2025-02-{index:02d}T10:00:00Z",
                "created_by": "exam-1",
                "assigned_to": ["cand-1"],
                "duration_minutes": 30,
                "difficulty": "medium",
                "scheduled_for": f"2025-03-{index:02d}T09:00:00Z",
                "status": "completed" if index <= 2 else "upcoming",
                "questions_count": 10,
            }
        )

    state.results["cand-1"] = [
        {
            "assessment_id": "asm-1",
            "assessment_title": "Assessment 1",
            "score": 8,
            "max_score": 10,
            "percentage": 80,
            "attempt_number": 1,
            "graded_at": "2025-03-01T11:00:00Z",
        },
        {
            "assessment_id": "asm-2",
            "assessment_title": "Assessment 2",
            "score": 6,
            "max_score": 10,
            "percentage": 60,
            "attempt_number": 2,
            "graded_at": "2025-03-02T11:00:00Z",
        },
    ]
    state.examiner_stats = {"totalCandidates": 2, "avgScore": 69.5}
    return state


def create_backend(state: BackendState) -> FastAPI:
    app = FastAPI(title="Fake portal backend")

    @app.middleware("http")
    async def record_and_fail(request: Request, call_next):
        key = f"{request.method} {request.url.path}"
        state.calls.append(key)
        failure = state.failures.get(key)
        if failure is not None:
            status_code, body = failure
            if isinstance(body, str):
                return PlainTextResponse(body, status_code=status_code)
            return JSONResponse(body, status_code=status_code)
        return await call_next(request)

    def find_user(user_id: str) -> dict[str, Any] | None:
        return next((user for user in state.users if user["id"] == user_id), None)

    @app.post("/auth/login")
    async def login(payload: dict[str, Any] = Body(...)):
        email = payload.get("email", "")
        if state.passwords.get(email) != payload.get("password"):
            return JSONResponse({"error": "Invalid credentials"}, status_code=401)
        user = next(user for user in state.users if user["email"] == email)
        return {"user": user, "is_first_login": user["id"] in state.first_login}

    @app.post("/auth/reset-password")
    async def reset_password(payload: dict[str, Any] = Body(...)):
        user = find_user(payload.get("userId", ""))
        if user is None or state.passwords.get(user["email"]) != payload.get("oldPassword"):
            return JSONResponse({"error": "Current password is incorrect"}, status_code=400)
        state.passwords[user["email"]] = payload["newPassword"]
        state.first_login.discard(user["id"])
        return {"message": "Password updated"}

    @app.post("/auth/signup", status_code=status.HTTP_201_CREATED)
    async def signup(payload: dict[str, Any] = Body(...)):
        if any(user["email"] == payload.get("email") for user in state.users):
            return JSONResponse({"error": "User already exists"}, status_code=409)
        user = {
            "id": f"user-{uuid4().hex[:8]}",
            "name": payload["name"],
            "email": payload["email"],
            "role": payload["role"],
            "created_at": "2025-04-01T08:00:00Z",
        }
        state.users.append(user)
        return {"user": user}

    @app.get("/admin/users")
    async def list_users():
        return {"users": list(state.users)}

    @app.delete("/admin/users")
    async def delete_user(payload: dict[str, Any] = Body(...)):
        user = find_user(payload.get("user_id", ""))
        if user is None:
            return JSONResponse({"error": "User not found"}, status_code=404)
        state.users.remove(user)
        return {"message": f"User {user['name']} deleted successfully"}

    @app.get("/admin/users/{user_id}/results")
    async def user_results(user_id: str):
        return {"results": state.results.get(user_id, [])}

    @app.get("/admin/assessments")
    async def all_assessments():
        return {"assessments": list(state.assessments)}

    @app.delete("/assessments/{assessment_id}/delete")
    async def delete_assessment(assessment_id: str):
        before = len(state.assessments)
        state.assessments = [a for a in state.assessments if a["id"] != assessment_id]
        if len(state.assessments) == before:
            return JSONResponse({"error": "Assessment not found"}, status_code=404)
        return Response(status_code=204)

    @app.get("/assessments/{assessment_id}/results")
    async def assessment_results(assessment_id: str):
        rows = [
            row
            for results in state.results.values()
            for row in results
            if row["assessment_id"] == assessment_id
        ]
        return {"results": rows}

    @app.post("/assessments/create", status_code=status.HTTP_201_CREATED)
    async def create_assessment(
        title: str = Form(""),
        description: str = Form(""),
        createdBy: str = Form(...),
        assignedTo: str = Form("[]"),
        scheduledFrom: str = Form(""),
        scheduledTo: str = Form(""),
        durationMinutes: str = Form("30"),
        timePerQuestion: str = Form("0"),
        difficulty: str = Form("medium"),
        prompt: str | None = Form(None),
        file: UploadFile | None = File(None),
    ):
        form = {
            "title": title,
            "description": description,
            "createdBy": createdBy,
            "assignedTo": json.loads(assignedTo),
            "scheduledFrom": scheduledFrom,
            "scheduledTo": scheduledTo,
            "durationMinutes": int(durationMinutes),
            "timePerQuestion": int(timePerQuestion),
            "difficulty": difficulty,
            "prompt": prompt,
            "filename": file.filename if file is not None else None,
            "file_bytes": await file.read() if file is not None else None,
        }
        state.created_forms.append(form)
        assessment = {
            "id": f"asm-{uuid4().hex[:8]}",
            "title": title,
            "description": description,
            "created_by": createdBy,
            "assigned_to": form["assignedTo"],
            "duration_minutes": form["durationMinutes"],
            "difficulty": difficulty,
            "created_at": "2025-04-02T08:00:00Z",
            "status": "upcoming",
        }
        state.assessments.append(assessment)
        return {"assessment": assessment}

    @app.get("/examiner/candidates")
    async def candidates():
        return {
            "candidates": [
                {"id": u["id"], "name": u["name"], "email": u["email"]}
                for u in state.users
                if u["role"] == "candidate"
            ]
        }

    @app.get("/examiner/assessments")
    async def examiner_assessments(examinerId: str):
        mine = [a for a in state.assessments if a.get("created_by") == examinerId]
        return {"assessments": mine, **state.examiner_stats}

    @app.get("/candidate/assessments")
    async def candidate_assessments(userId: str):
        return {
            "assessments": [a for a in state.assessments if userId in a.get("assigned_to", [])]
        }

    @app.get("/candidate/results")
    async def candidate_results(userId: str):
        rows = [
            {key: value for key, value in row.items() if key != "percentage"}
            for row in state.results.get(userId, [])
        ]
        return {"results": rows}

    return app
