import pytest

from carriage_vision.config import Settings
from carriage_vision.providers.bedrock import BedrockProvider
from carriage_vision.providers.registry import ProviderRegistry, default_registry
from carriage_vision.providers.sambanova import SambaNovaProvider

from conftest import StubProvider


class TestProviderRegistry:
    def test_get_unknown_returns_none(self):
        assert ProviderRegistry().get("nope") is None

    def test_iteration_follows_insertion_order(self):
        registry = ProviderRegistry()
        for name in ["zeta", "alpha", "mid"]:
            registry.register(name, lambda settings, n=name: StubProvider(n))

        assert registry.names() == ["zeta", "alpha", "mid"]
        assert [name for name, _ in registry] == ["zeta", "alpha", "mid"]
        assert len(registry) == 3

    def test_lookup_is_case_insensitive(self):
        registry = ProviderRegistry()
        registry.register("Stub", lambda settings: StubProvider("Stub"))
        assert "stub" in registry
        assert registry.get(" STUB ") is not None

    def test_duplicate_registration_raises(self):
        registry = ProviderRegistry()
        registry.register("stub", lambda settings: StubProvider("a"))
        with pytest.raises(ValueError, match="already registered"):
            registry.register("stub", lambda settings: StubProvider("b"))

    def test_create_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown provider: nope"):
            ProviderRegistry().create("nope", Settings())

    def test_create_passes_settings(self):
        seen = []
        registry = ProviderRegistry()
        registry.register("stub", lambda settings: seen.append(settings) or StubProvider("Stub"))
        settings = Settings(primary_provider="stub")

        provider = registry.create("stub", settings)

        assert provider.name == "Stub"
        assert seen == [settings]


class TestDefaultRegistry:
    def test_builtin_order(self):
        assert default_registry().names() == ["sambanova", "bedrock", "openai", "anthropic", "google"]

    def test_factories_build_unconfigured_providers(self):
        registry = default_registry()
        settings = Settings()

        sambanova = registry.create("sambanova", settings)
        bedrock = registry.create("bedrock", settings)

        assert isinstance(sambanova, SambaNovaProvider)
        assert isinstance(bedrock, BedrockProvider)
        assert not sambanova.is_configured()
        assert not bedrock.is_configured()
