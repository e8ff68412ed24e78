# cook4me/tests/conftest.py
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from cook4me.models.recipe import Recipe, SavedRecipe


# --- Fake Supabase client ---
class FakeQuery:
    """Chainable stand-in for a PostgREST query builder over in-memory rows."""

    def __init__(self, db, name):
        self.db = db
        self.name = name
        self._op = "select"
        self._payload = None
        self._on_conflict = None
        self._filters = []
        self._order = None
        self._limit = None

    def select(self, *args, **kwargs):
        if self._op not in ("insert", "upsert"):
            self._op = "select"
        return self

    def insert(self, payload):
        self._op = "insert"
        self._payload = payload
        return self

    def upsert(self, payload, on_conflict=None):
        self._op = "upsert"
        self._payload = payload
        self._on_conflict = on_conflict
        return self

    def update(self, payload):
        self._op = "update"
        self._payload = payload
        return self

    def delete(self):
        self._op = "delete"
        return self

    def eq(self, col, val):
        self._filters.append((col, val))
        return self

    def order(self, col, desc=False):
        self._order = (col, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def _matches(self, row):
        return all(row.get(col) == val for col, val in self._filters)

    def execute(self):
        self.db.calls.append((self.name, self._op, list(self._filters)))
        if self.db.fail:
            raise RuntimeError("database unavailable")
        rows = self.db.tables.setdefault(self.name, [])

        if self._op == "insert":
            new_rows = self._payload if isinstance(self._payload, list) else [self._payload]
            created = []
            for r in new_rows:
                r = dict(r)
                r.setdefault("id", str(uuid.uuid4()))
                rows.append(r)
                created.append(dict(r))
            return SimpleNamespace(data=created, count=None)

        if self._op == "upsert":
            r = dict(self._payload)
            key = self._on_conflict
            for existing in rows:
                if key and existing.get(key) == r.get(key):
                    existing.update(r)
                    return SimpleNamespace(data=[dict(existing)], count=None)
            rows.append(r)
            return SimpleNamespace(data=[dict(r)], count=None)

        matched = [r for r in rows if self._matches(r)]

        if self._op == "update":
            for r in matched:
                r.update(self._payload)
            return SimpleNamespace(data=[dict(r) for r in matched], count=None)

        if self._op == "delete":
            self.db.tables[self.name] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=[dict(r) for r in matched], count=None)

        if self._order:
            col, desc = self._order
            matched = sorted(matched, key=lambda r: r.get(col), reverse=desc)
        if self._limit is not None:
            matched = matched[: self._limit]
        return SimpleNamespace(data=[dict(r) for r in matched], count=None)


class FakeBucket:

    def __init__(self, storage, name):
        self.storage = storage
        self.name = name

    def upload(self, path, file, file_options=None):
        if self.storage.fail_upload:
            raise RuntimeError("upload rejected")
        self.storage.objects[path] = (file, (file_options or {}).get("content-type"))
        return SimpleNamespace(path=path, full_path=f"{self.name}/{path}")

    def get_public_url(self, path):
        return f"https://demo.supabase.co/storage/v1/object/public/{self.name}/{path}"

    def remove(self, paths):
        if self.storage.fail_remove:
            raise RuntimeError("remove rejected")
        removed = []
        for p in paths:
            if self.storage.objects.pop(p, None) is not None:
                removed.append({"name": p})
        return removed

    def list(self, path=None):
        prefix = (path or "").rstrip("/") + "/"
        return [{"name": p[len(prefix):]} for p in self.storage.objects if p.startswith(prefix)]


class FakeStorage:

    def __init__(self):
        self.objects = {}
        self.fail_upload = False
        self.fail_remove = False

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeAuth:

    def __init__(self):
        self.tokens = {}

    def get_user(self, jwt=None):
        user = self.tokens.get(jwt)
        if user is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=user)


class FakeClient:

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.fail = False
        self.storage = FakeStorage()
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_db():
    return FakeClient()


# --- Fake OpenAI client ---
class FakeCompletions:

    def __init__(self):
        self.content = "{}"
        self.error = None
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))]
        )


class FakeOpenAI:

    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


# --- Recipe builders ---
RECIPE_JSON = """{
  "name": "Chicken Tinga Tacos",
  "description": "Smoky Mexican shredded chicken in chipotle tomato sauce.",
  "prepTime": 5,
  "cookTime": 15,
  "totalTime": 20,
  "servings": 2,
  "difficulty": "Easy",
  "ingredients": [
    {"item": "chicken breast", "amount": "300 g", "notes": "boneless"},
    {"item": "chipotle in adobo", "amount": "2 tbsp"},
    {"item": "corn tortillas", "amount": 6}
  ],
  "instructions": ["Poach the chicken.", "Simmer with the sauce.", "Serve in tortillas."],
  "tips": ["Char the tortillas over an open flame."],
  "nutrition": {"calories": 420, "protein": 38, "carbs": 35.5, "fats": 12}
}"""


@pytest.fixture
def recipe_json():
    return RECIPE_JSON


@pytest.fixture
def make_recipe():

    def _make(
        name="Test Dish",
        description="",
        difficulty="Easy",
        total_time=30,
        ingredients=("salt",),
        nutrition=None,
    ):
        return Recipe(
            name=name,
            description=description,
            prep_time=0,
            cook_time=total_time,
            total_time=total_time,
            servings=2,
            difficulty=difficulty,
            ingredients=[{"item": i, "amount": "1"} for i in ingredients],
            instructions=["Cook it."],
            nutrition=nutrition,
        )

    return _make


@pytest.fixture
def make_saved_recipe(make_recipe):
    counter = {"n": 0}
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _make(is_loved=False, user_id="user-1", **recipe_kwargs):
        counter["n"] += 1
        recipe = make_recipe(**recipe_kwargs)
        return SavedRecipe(
            **recipe.model_dump(),
            id=f"r{counter['n']}",
            user_id=user_id,
            saved_at=base + timedelta(minutes=counter["n"]),
            is_loved=is_loved,
        )

    return _make
