"""Shared test fixtures."""
from datetime import timedelta

import pytest
from unittest.mock import patch
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.database import Base, utcnow

# Every module that opens its own session through get_session()
SESSION_USERS = [
    'app.services.prospects',
    'app.services.hive',
    'app.pipeline.scripts',
    'app.routes.monitor',
]


class FakeRedis:
    """Minimal in-memory Redis fake for circuit breaker state."""

    def __init__(self):
        self.get_store = {}
        self.hash_store = {}

    def get(self, key):
        return self.get_store.get(key)

    def set(self, key, value):
        self.get_store[key] = value

    def incr(self, key):
        val = int(self.get_store.get(key, 0)) + 1
        self.get_store[key] = str(val)
        return val

    def delete(self, *keys):
        for k in keys:
            self.get_store.pop(k, None)
            self.hash_store.pop(k, None)

    def hset(self, key, field, value):
        self.hash_store.setdefault(key, {})[field] = value

    def hincrby(self, key, field, amount):
        h = self.hash_store.setdefault(key, {})
        h[field] = str(int(h.get(field, 0)) + amount)

    def hgetall(self, key):
        return dict(self.hash_store.get(key, {}))

    def pipeline(self):
        return FakePipeline(self)


class FakePipeline:
    """Fake Redis pipeline that executes immediately."""

    def __init__(self, redis):
        self._redis = redis
        self._ops = []

    def set(self, key, value):
        self._ops.append(('set', key, value))
        return self

    def delete(self, *keys):
        self._ops.append(('delete', keys))
        return self

    def hincrby(self, key, field, amount):
        self._ops.append(('hincrby', key, field, amount))
        return self

    def hset(self, key, field, value):
        self._ops.append(('hset', key, field, value))
        return self

    def execute(self):
        for op in self._ops:
            if op[0] == 'set':
                self._redis.set(op[1], op[2])
            elif op[0] == 'delete':
                self._redis.delete(*op[1])
            elif op[0] == 'hincrby':
                self._redis.hincrby(op[1], op[2], op[3])
            elif op[0] == 'hset':
                self._redis.hset(op[1], op[2], op[3])
        self._ops = []


def _create_schema(engine):
    import app.models.prospect
    import app.models.script
    import app.models.learning
    Base.metadata.create_all(engine)


@pytest.fixture
def db_engine(tmp_path):
    """File-backed SQLite engine with schema created. Each session gets its own connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'hive.db'}",
        connect_args={'check_same_thread': False, 'timeout': 30},
    )
    _create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, expire_on_commit=False)


@pytest.fixture(autouse=True)
def patch_get_session(session_factory):
    """Route every get_session() call to a fresh session on the test engine."""
    patches = [
        patch(f'{target}.get_session', side_effect=lambda: session_factory())
        for target in SESSION_USERS
    ]
    for p in patches:
        p.start()
    yield session_factory
    for p in reversed(patches):
        p.stop()


@pytest.fixture
def db_session(session_factory):
    """A session for arranging and inspecting rows directly."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def fake_redis():
    """In-memory Redis fake with dict-backed storage."""
    return FakeRedis()


@pytest.fixture(autouse=True)
def breakers(fake_redis):
    """Register the standard breakers on fake Redis; clear the registry afterwards."""
    from app.services.circuit_breaker import _registry, init_breakers
    _registry.clear()
    init_breakers(fake_redis)
    yield _registry
    _registry.clear()


@pytest.fixture
def app(fake_redis):
    """Flask test app."""
    with patch('app.extensions.redis_client', fake_redis):
        from app import create_app
        app = create_app()
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def make_prospect(db_session):
    """Factory fixture — inserts a Prospect row. `age` backdates created_at."""
    from app.models.prospect import Prospect, priority_for_score

    def _make(name='Nok', source='LINE', score=50, signal=None, age=None, **overrides):
        created_at = utcnow() - (age or timedelta(0))
        prospect = Prospect(
            name=name,
            source=source,
            score=score,
            signal=signal,
            priority=priority_for_score(score),
            created_at=created_at,
            **overrides,
        )
        db_session.add(prospect)
        db_session.commit()
        return prospect
    return _make


@pytest.fixture
def make_script(db_session):
    """Factory fixture — inserts a Script row, optionally already resolved."""
    from app.models.script import Script

    def _make(prospect=None, text='Hey, saw your post!', script_type='approach',
              tenant_id='default', feedback=None, created_at=None):
        script = Script(
            prospect_id=prospect.id if prospect else None,
            tenant_id=tenant_id,
            text=text,
            script_type=script_type,
            created_at=created_at or utcnow(),
        )
        if feedback:
            script.resolve(feedback)
        db_session.add(script)
        db_session.commit()
        return script
    return _make
