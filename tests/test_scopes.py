"""Tests for scopes and ScopeRegistry."""
import pytest

from docstate import FunctionScope, InvalidScopeRegistration, Model, Scope, ScopeRegistry


class ActiveScope(Scope):
    name = "A"

    def apply(self, query, model):
        query.where("active", True)


class TenantScope(Scope):
    name = "B"

    def apply(self, query, model):
        query.where("tenant", "acme")


class UnnamedScope(Scope):
    def apply(self, query, model):
        query.where("unnamed", 1)


class RecordingQuery:
    def __init__(self):
        self.filters = {}

    def where(self, field, value):
        self.filters[field] = value
        return self


@pytest.fixture
def registry():
    registry = ScopeRegistry()
    registry.register(ActiveScope())
    registry.register(TenantScope())
    return registry


class TestScopeRegistry:

    def test_applies_all_in_order(self, registry):
        query = RecordingQuery()

        applied = registry.apply_all(query, None)

        assert applied == ["A", "B"]
        assert query.filters == {"active": True, "tenant": "acme"}

    def test_ignore_by_name(self, registry):
        query = RecordingQuery()

        applied = registry.apply_all(query, None, ["A"])

        assert applied == ["B"]
        assert query.filters == {"tenant": "acme"}

    def test_ignore_by_class(self, registry):
        query = RecordingQuery()
        assert registry.apply_all(query, None, [TenantScope]) == ["A"]

    def test_wildcard_skips_everything(self, registry):
        query = RecordingQuery()

        assert registry.apply_all(query, None, ["*"]) == []
        assert query.filters == {}

    def test_default_name_is_qualified_type(self):
        registry = ScopeRegistry()
        name = registry.register(UnnamedScope())

        assert name == f"{__name__}.UnnamedScope"
        assert registry.apply_all(RecordingQuery(), None, [UnnamedScope]) == []

    def test_reregistering_name_replaces_in_place(self, registry):
        registry.register(FunctionScope("A", lambda q, m: q.where("replaced", True)))
        query = RecordingQuery()

        assert registry.apply_all(query, None) == ["A", "B"]
        assert query.filters == {"replaced": True, "tenant": "acme"}
        assert len(registry) == 2

    def test_duck_typed_scope_accepted(self):
        class Duck:
            def apply(self, query, model):
                query.where("duck", True)

        registry = ScopeRegistry()
        name = registry.register(Duck())
        assert name.endswith("Duck")

    @pytest.mark.parametrize("bad", [object(), "scope", 42, ActiveScope])
    def test_invalid_registration_fails_immediately(self, bad):
        registry = ScopeRegistry()
        with pytest.raises(InvalidScopeRegistration):
            registry.register(bad)
        assert len(registry) == 0

    def test_scope_without_apply_is_rejected_at_registration(self):
        class Incomplete(Scope):
            name = "incomplete"

        registry = ScopeRegistry()
        with pytest.raises(InvalidScopeRegistration):
            registry.register(Incomplete())
        assert "incomplete" not in registry
        assert len(registry) == 0

    def test_invalid_registration_is_a_type_error(self):
        with pytest.raises(TypeError):
            ScopeRegistry().register(object())

    def test_remove(self, registry):
        registry.remove("A")
        assert registry.names() == ["B"]
        assert "A" not in registry


class Account(Model):
    @classmethod
    def boot(cls):
        super().boot()
        cls.add_scope(ActiveScope())
        cls.add_scope(TenantScope())


class TestModelScopes:

    def test_query_applies_registered_scopes(self, connection):
        query = Account.query()

        assert query.scopes_applied == ["A", "B"]
        assert query.filters == {"active": True, "tenant": "acme"}

    def test_ignore_scopes_on_query(self, connection):
        assert Account.query(ignore_scopes=["A"]).filters == {"tenant": "acme"}
        assert Account.query(ignore_scopes=["*"]).filters == {}

    def test_scopes_are_not_inherited(self, connection):
        class Parent(Model):
            pass

        class Child(Parent):
            pass

        Parent.add_scope(ActiveScope())

        assert Parent.query().scopes_applied == ["A"]
        assert Child.query().scopes_applied == []

    def test_scopes_are_per_type(self, connection):
        class Other(Model):
            pass

        Other.add_scope(lambda q, m: q.where("other", True), name="O")

        assert Other.query().filters == {"other": True}
        assert Account.query().filters == {"active": True, "tenant": "acme"}

    def test_scoped_query_filters_results(self, connection):
        Account.create({"name": "live", "active": True, "tenant": "acme"})
        Account.create({"name": "gone", "active": False, "tenant": "acme"})

        assert [a.get("name") for a in Account.all()] == ["live"]
        assert sorted(a.get("name") for a in Account.query(ignore_scopes=["*"]).get()) == ["gone", "live"]
