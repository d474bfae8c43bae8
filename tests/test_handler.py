import pytest
from pydantic import BaseModel

from mcpkit.handler import (
    InvalidParametersError,
    InvalidPromptParametersError,
    PromptError,
    PromptInternalError,
    PromptNotFoundError,
    ResourceError,
    ResourceExecutionError,
    ResourceNotFoundError,
    ResourceTemplateHandler,
    SchemaError,
    ToolError,
    ToolExecutionError,
    ToolHandler,
    ToolNotFoundError,
    generate_schema,
)


@pytest.mark.parametrize(
    "error, text",
    [
        (InvalidParametersError("x"), "Invalid parameters: x"),
        (ToolExecutionError("x"), "Execution failed: x"),
        (SchemaError("x"), "Schema error: x"),
        (ToolNotFoundError("x"), "Tool not found: x"),
        (ResourceExecutionError("x"), "Execution failed: x"),
        (ResourceNotFoundError("x"), "Resource not found: x"),
        (InvalidPromptParametersError("x"), "Invalid parameters: x"),
        (PromptInternalError("x"), "Internal error: x"),
        (PromptNotFoundError("x"), "Prompt not found: x"),
    ],
)
def test_error_messages(error, text):
    assert str(error) == text


def test_error_hierarchy():
    tool_error = ToolNotFoundError("a")
    resource_error = ResourceNotFoundError("a")
    prompt_error = PromptNotFoundError("a")
    assert [
        isinstance(tool_error, ToolError),
        isinstance(resource_error, ResourceError),
        isinstance(prompt_error, PromptError),
        isinstance(resource_error, ToolError),
    ] == [True, True, True, False]
    assert str(tool_error) == "Tool not found: a"
    assert str(resource_error) == "Resource not found: a"


def test_tool_error_equality():
    assert InvalidParametersError("a") == InvalidParametersError("a")
    assert InvalidParametersError("a") != ToolExecutionError("a")
    assert InvalidParametersError("a") != InvalidParametersError("b")


class EchoTool(ToolHandler):
    def name(self):
        return "echo"

    def description(self):
        return "Echoes its input"

    def schema(self):
        return {"type": "object"}

    async def call(self, params):
        if "text" not in params:
            raise InvalidParametersError("text is required")
        return params["text"]


@pytest.mark.asyncio
async def test_tool_handler_call():
    tool = EchoTool()
    assert (tool.name(), tool.description()) == ("echo", "Echoes its input")
    assert await tool.call({"text": "hi"}) == "hi"
    with pytest.raises(ToolError) as info:
        await tool.call({})
    assert info.value == InvalidParametersError("text is required")


@pytest.mark.asyncio
async def test_tool_handler_error():
    with pytest.raises(InvalidParametersError) as info:
        await EchoTool().call({})
    assert info.value.detail == "text is required"
    assert str(info.value) == str(InvalidParametersError("text is required"))


def test_tool_handler_is_abstract():
    class Partial(ToolHandler):
        def name(self):
            return "partial"

    with pytest.raises(TypeError):
        ToolHandler()
    with pytest.raises(TypeError):
        Partial()


class FileTemplate(ResourceTemplateHandler):
    @classmethod
    def template(cls):
        return "file:///{path}"

    @classmethod
    def schema(cls):
        return {"type": "object"}

    async def get(self, params):
        if "path" not in params:
            raise ResourceNotFoundError("no path")
        return "contents of " + params["path"]


@pytest.mark.asyncio
async def test_resource_template_handler():
    assert FileTemplate.template() == "file:///{path}"
    assert await FileTemplate().get({"path": "notes"}) == "contents of notes"
    with pytest.raises(ResourceError) as info:
        await FileTemplate().get({})
    assert str(info.value) == str(ResourceNotFoundError("no path"))


def test_resource_template_handler_is_abstract():
    class Partial(ResourceTemplateHandler):
        @classmethod
        def template(cls):
            return "x"

    with pytest.raises(TypeError):
        ResourceTemplateHandler()
    with pytest.raises(TypeError):
        Partial()


class AddParameters(BaseModel):
    a: int
    b: int


def test_generate_schema_for_model():
    schema = generate_schema(AddParameters)
    assert set(schema["properties"]) == {"a", "b"}
    assert sorted(schema["required"]) == ["a", "b"]


def test_generate_schema_for_plain_type():
    assert generate_schema(int) == {"type": "integer"}


def test_generate_schema_failure():
    class Opaque:
        pass

    with pytest.raises(SchemaError) as info:
        generate_schema(Opaque)
    assert str(info.value).startswith("Schema error: ")