"""Flow invocation pipeline and registry."""

import pytest

from core.domain.errors import (
    FlowError,
    InputValidationError,
    ModelInvocationError,
    OutputValidationError,
    UnknownFlowError,
)
from core.domain.models import (
    AiSearchOutput,
    GenerateServiceDescriptionInput,
    GenerateServiceDescriptionOutput,
    SetupCorsOutput,
)
from core.flows import build_flow_registry, search_photos
from core.flows import service_description
from core.services.flow_runner import FlowDefinition, FlowRegistry, FlowRunner, invoke
from core.services.prompt_renderer import PromptTemplate

from tests.conftest import FakeModel, StubStorage

PHOTOS = [{"id": "a", "title": "x"}, {"id": "b", "title": "y"}]


class TestSearchFastPath:
    async def test_empty_query_returns_all_ids_without_model_call(self, runner, fake_model):
        result = await search_photos(runner, {"query": "", "photos": PHOTOS})

        assert isinstance(result, AiSearchOutput)
        assert result.model_dump(by_alias=True) == {"photoIds": ["a", "b"]}
        assert fake_model.calls == []

    async def test_whitespace_query_is_empty(self, runner, fake_model):
        result = await search_photos(runner, {"query": "   ", "photos": PHOTOS})
        assert result.photo_ids == ["a", "b"]
        assert fake_model.calls == []

    async def test_non_empty_query_calls_model(self, runner, fake_model):
        fake_model.answers.append({"photoIds": ["b"]})

        result = await search_photos(runner, {"query": "forest", "photos": PHOTOS})

        assert result.photo_ids == ["b"]
        assert len(fake_model.calls) == 1
        call = fake_model.calls[0]
        assert call["flow"] == "ai_search"
        assert "Analyze the user's query: forest" in call["prompt"].text
        assert '- ID: a, Title: "x"' in call["prompt"].text
        assert '- ID: b, Title: "y"' in call["prompt"].text
        assert call["output_schema"]["required"] == ["photoIds"]


class TestValidation:
    async def test_missing_input_field_never_reaches_model(self, runner, fake_model):
        with pytest.raises(InputValidationError) as exc_info:
            await search_photos(runner, {"photos": PHOTOS})

        assert exc_info.value.flow == "ai_search"
        assert exc_info.value.field == "query"
        assert fake_model.calls == []

    async def test_invalid_data_uri_is_input_error(self, runner, fake_model):
        with pytest.raises(InputValidationError) as exc_info:
            await runner.invoke("content_moderation", {"photoDataUri": "not-a-data-uri"})

        assert exc_info.value.field == "photoDataUri"
        assert fake_model.calls == []

    async def test_missing_output_field(self, runner, fake_model, png_data_uri):
        fake_model.answers.append({"title": "Dawn"})

        with pytest.raises(OutputValidationError) as exc_info:
            await runner.invoke("generate_caption", {"photoDataUri": png_data_uri})

        assert exc_info.value.field == "description"
        assert len(fake_model.calls) == 1

    async def test_wrong_output_type(self, runner, fake_model):
        fake_model.answers.append({"description": "Lovely", "features": "not a list"})

        with pytest.raises(OutputValidationError) as exc_info:
            await runner.invoke("generate_service_description", {"title": "Wedding Package"})

        assert exc_info.value.field == "features"

    async def test_none_answer_is_output_error(self, runner, fake_model):
        fake_model.answers.append(None)

        with pytest.raises(OutputValidationError):
            await runner.invoke("generate_service_description", {"title": "Wedding Package"})

    async def test_valid_output_is_returned_as_record(self, runner, fake_model):
        fake_model.answers.append(
            {"description": "Timeless coverage.", "features": ["8 hours", "Online gallery", "Album"]}
        )

        result = await runner.invoke("generate_service_description", {"title": "Wedding Package"})

        assert isinstance(result, GenerateServiceDescriptionOutput)
        assert result.features == ["8 hours", "Online gallery", "Album"]


class TestModelFailures:
    async def test_model_exception_becomes_model_invocation_error(self, runner, fake_model):
        fake_model.answers.append(ConnectionError("connection reset"))

        with pytest.raises(ModelInvocationError) as exc_info:
            await runner.invoke("generate_service_description", {"title": "Portraits"})

        assert exc_info.value.flow == "generate_service_description"
        assert "connection reset" in str(exc_info.value)
        assert len(fake_model.calls) == 1

    async def test_flow_errors_from_model_pass_through(self, runner, fake_model):
        original = OutputValidationError(flow="generate_service_description", field="", message="not JSON")
        fake_model.answers.append(original)

        with pytest.raises(OutputValidationError) as exc_info:
            await runner.invoke("generate_service_description", {"title": "Portraits"})

        assert exc_info.value is original

    async def test_no_retry_after_failure(self, runner, fake_model):
        fake_model.answers.extend([TimeoutError("slow"), {"description": "d", "features": []}])

        with pytest.raises(ModelInvocationError):
            await runner.invoke("generate_service_description", {"title": "Portraits"})

        assert len(fake_model.calls) == 1

    async def test_missing_model_client(self, stub_storage):
        runner = FlowRunner(registry=build_flow_registry(storage=stub_storage), model=None)

        with pytest.raises(ModelInvocationError, match="no model client"):
            await runner.invoke("generate_service_description", {"title": "Portraits"})

    async def test_fast_path_works_without_model_client(self):
        runner = FlowRunner(registry=build_flow_registry(), model=None)
        result = await search_photos(runner, {"query": "", "photos": PHOTOS})
        assert result.photo_ids == ["a", "b"]


class TestHandlerFlows:
    async def test_cors_flow_calls_storage_not_model(self, runner, fake_model, stub_storage):
        result = await runner.invoke("setup_cors", {"bucketName": "my-bucket", "origin": "https://my-app.com"})

        assert isinstance(result, SetupCorsOutput)
        assert result.success is True
        assert [r.bucket_name for r in stub_storage.records] == ["my-bucket"]
        assert fake_model.calls == []

    async def test_cors_input_is_validated(self, runner, stub_storage):
        with pytest.raises(InputValidationError) as exc_info:
            await runner.invoke("setup_cors", {"bucketName": "ab", "origin": "https://my-app.com"})

        assert exc_info.value.field == "bucketName"
        assert stub_storage.records == []

    async def test_handler_output_is_validated(self):
        async def broken(record):
            return {"success": "maybe"}

        definition = FlowDefinition(
            name="broken",
            input_schema=GenerateServiceDescriptionInput,
            output_schema=SetupCorsOutput,
            handler=broken,
        )
        with pytest.raises(OutputValidationError):
            await invoke(definition, {"title": "x"})


class TestRegistry:
    def test_full_registry(self, stub_storage):
        registry = build_flow_registry(storage=stub_storage)
        assert registry.names() == [
            "ai_search",
            "content_moderation",
            "generate_blog_post",
            "generate_caption",
            "generate_service_description",
            "setup_cors",
            "theme_customization",
        ]
        assert len(registry) == 7

    def test_cors_flow_needs_storage(self):
        registry = build_flow_registry()
        assert "setup_cors" not in registry
        assert "ai_search" in registry

    def test_unknown_flow(self):
        registry = FlowRegistry()
        with pytest.raises(UnknownFlowError) as exc_info:
            registry.get("nope")
        assert isinstance(exc_info.value, FlowError)
        assert isinstance(exc_info.value, KeyError)
        assert "nope" in str(exc_info.value)

    async def test_runner_unknown_flow(self, runner):
        with pytest.raises(UnknownFlowError):
            await runner.invoke("nope", {})

    def test_duplicate_registration(self):
        registry = FlowRegistry([service_description.build_definition()])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(service_description.build_definition())

    def test_iteration_is_sorted(self):
        registry = build_flow_registry()
        assert [d.name for d in registry] == registry.names()


class TestFlowDefinition:
    def test_needs_prompt_or_handler(self):
        with pytest.raises(ValueError):
            FlowDefinition(
                name="empty",
                input_schema=GenerateServiceDescriptionInput,
                output_schema=GenerateServiceDescriptionOutput,
            )

    def test_rejects_prompt_and_handler_together(self):
        async def handler(record):
            return {}

        with pytest.raises(ValueError):
            FlowDefinition(
                name="both",
                input_schema=GenerateServiceDescriptionInput,
                output_schema=GenerateServiceDescriptionOutput,
                prompt=PromptTemplate("{{ title }}", schema=GenerateServiceDescriptionInput),
                handler=handler,
            )

    def test_prompt_must_match_input_schema(self):
        with pytest.raises(ValueError, match="another schema"):
            FlowDefinition(
                name="mismatch",
                input_schema=GenerateServiceDescriptionOutput,
                output_schema=GenerateServiceDescriptionOutput,
                prompt=PromptTemplate("{{ title }}", schema=GenerateServiceDescriptionInput),
            )

    def test_uses_model(self, stub_storage):
        registry = build_flow_registry(storage=stub_storage)
        assert registry.get("ai_search").uses_model
        assert not registry.get("setup_cors").uses_model


class TestLifecycle:
    async def test_aclose_closes_resources(self):
        model = FakeModel()
        storage = StubStorage()
        runner = FlowRunner(registry=build_flow_registry(storage=storage), model=model, resources=[model, storage])

        async with runner:
            pass

        assert model.closed
        assert storage.closed

    async def test_invoke_after_close(self, runner):
        await runner.aclose()
        with pytest.raises(RuntimeError):
            await runner.invoke("ai_search", {"query": "", "photos": []})
