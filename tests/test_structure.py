"""
Structure lint tests.
Verify that the component skeleton exists and follows conventions.
"""

from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent

COMPONENT_FILES = ("__init__.py", "_impl.py", "component.py", "models.py", "ports.py")


class TestProjectStructure:
    def test_layers_exist(self) -> None:
        for layer in ("domain", "ports", "adapters", "components", "api", "app_shell", "rules"):
            assert (PROJECT_ROOT / "src" / layer).is_dir(), layer

    @pytest.mark.parametrize("component", ["invite", "identity"])
    def test_component_layout(self, component: str) -> None:
        base = PROJECT_ROOT / "src" / "components" / component
        for name in COMPONENT_FILES:
            assert (base / name).is_file(), f"{component}/{name} missing"
        assert (base / "tests").is_dir()

    def test_rules_and_migrations_present(self) -> None:
        assert (PROJECT_ROOT / "rules.yaml").is_file()
        migrations = sorted((PROJECT_ROOT / "migrations").glob("*.sql"))
        assert migrations, "at least one migration required"
        for path in migrations:
            assert "-- Down" in path.read_text(), f"{path.name} has no Down section"


class TestComponentExports:
    def test_invite_exports(self) -> None:
        import src.components.invite as invite

        for name in invite.__all__:
            assert hasattr(invite, name), name

    def test_identity_exports(self) -> None:
        import src.components.identity as identity

        for name in identity.__all__:
            assert hasattr(identity, name), name
