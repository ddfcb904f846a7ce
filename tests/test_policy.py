from library_api import create_app
from library_api.config import TestConfig
from library_api.utils import policy
from library_api.utils.policy import Policy


def test_default_grants():
    p = Policy()
    assert p.allows("librarian", policy.CIRCULATION)
    assert p.allows("admin", policy.CIRCULATION)
    assert not p.allows("member", policy.CIRCULATION)
    assert p.allows("member", policy.READ)
    assert not p.allows(None, policy.READ)
    assert not p.allows("librarian", policy.ADMINISTER)
    assert not p.allows("admin", "no.such.capability")


def test_custom_policy_is_injected(tmp_path):
    class _Config(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'policy.db'}"

    # members run the desk in this deployment
    custom = Policy({policy.CIRCULATION: {"member"}, policy.READ: {"member"}})
    app = create_app(_Config, policy=custom)

    with app.app_context():
        assert policy.get_policy() is custom
        assert policy.get_policy().allows("member", policy.CIRCULATION)
        assert not policy.get_policy().allows("librarian", policy.CIRCULATION)
