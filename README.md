# mcpkit

A library for working with the Model Context Protocol (MCP):

- protocol types in `mcpkit.content`, `mcpkit.resource`, `mcpkit.tool`,
  `mcpkit.prompt` and `mcpkit.protocol` (content, resources, tools, prompts,
  JSON-RPC messages and result objects), each with `to_dict()` and, where it
  makes sense, `from_dict()` for plain JSON-ready dictionaries;
- `mcpkit.tooldef.tool`, a decorator that turns a function into a tool
  handler with a JSON schema generated from its annotations;
- an asyncio client, `mcpkit.client.McpClient`, that talks to a server over a
  child process's stdin/stdout (`mcpkit.stdio.StdioTransport`) or over
  Server-Sent Events plus HTTP POST (`mcpkit.sse.SseTransport`).

## Installation

```
pip install mcpkit
```

For running the tests:

```
pip install "mcpkit[test]"
pytest
```

## Content and resources

```python
from mcpkit.content import Content
from mcpkit.role import Role
from mcpkit.resource import Resource

message = Content.text("hello").with_audience([Role.USER]).with_priority(0.5)
message.as_text()      # "hello"
message.priority()     # 0.5
message.to_dict()      # {"type": "text", "text": "hello", "annotations": {...}}

doc = Resource.with_uri("str:///Hello", "greeting.txt", 0.5, "text")
doc.scheme()                    # "str"
doc.mark_active().is_active()   # True
```

`Content.with_priority` and `Resource.with_uri` raise `ValueError` for a
priority outside 0.0–1.0. `Resource.new` and `Resource.with_uri` raise
`InvalidUriError` (a `ValueError`) for a URI that cannot be parsed. A MIME type
other than `"text"` or `"blob"` falls back to `"text"`.

## JSON-RPC messages

```python
from mcpkit.protocol import message_from_json, message_to_json, JsonRpcRequest

msg = message_from_json('{"jsonrpc": "2.0", "id": 1, "method": "tools/list"}')
isinstance(msg, JsonRpcRequest)   # True
message_to_json(msg)              # '{"jsonrpc":"2.0","id":1,"method":"tools/list"}'
```

A message with an `error` is a `JsonRpcError`, one with a `result` a
`JsonRpcResponse`, one with a `method` a `JsonRpcRequest` (with an id) or
`JsonRpcNotification` (without), and one with none of these and no id a
`JsonRpcNil`. Anything else raises `InvalidMessageError`.

## Defining tools

```python
from mcpkit.tooldef import tool

@tool(name="add", description="Add two numbers", params={"a": "first", "b": "second"})
async def add(a: int, b: int) -> int:
    return a + b

add.name()                        # "add"
add.schema()                      # JSON schema for {"a": int, "b": int}
await add.call({"a": 1, "b": 2})  # 3
```

`@tool` may also be used bare; the tool is then named after the function.
Plain and async functions both work. Arguments that fail validation raise
`InvalidParametersError`; an exception inside the function is raised as
`ToolExecutionError`. For hand-written handlers, subclass
`mcpkit.handler.ToolHandler`.

## Talking to a server

```python
import asyncio
from mcpkit.client import McpClient, ClientInfo, ClientCapabilities
from mcpkit.service import McpService
from mcpkit.stdio import StdioTransport

async def main():
    transport = StdioTransport("my-mcp-server", [], {})
    handle = await transport.start()
    client = McpClient(McpService.with_timeout(handle, 30.0))

    result = await client.initialize(ClientInfo("example-client", "1.0.0"), ClientCapabilities())
    print(result.server_info.name)

    tools = await client.list_tools(None)
    for t in tools.tools:
        print(t.name, "-", t.description)

    answer = await client.call_tool("add", {"a": 1, "b": 2})
    print(answer.content[0].as_text())

    await transport.close()

asyncio.run(main())
```

`StdioTransport` starts the command with the given arguments and extra
environment variables and exchanges newline-delimited JSON over its pipes. If
the process ends, the next send raises `StdioProcessError` carrying what the
process wrote to stderr.

To connect over SSE instead, use `SseTransport("http://localhost:8000/sse", {})`.
`start()` gives the server about a second to announce its POST endpoint with
an `endpoint` event; messages sent before an endpoint is known fail with
`NotConnectedError`.

Calls made before `initialize` raise `NotInitializedError`. Calls for a
capability the server lacks raise `RpcError` with the JSON-RPC "method not
found" code, except `list_resources` and `list_tools`, which return empty
results. Errors returned by the server are raised as `RpcError` carrying the
server's code and message. A failed or timed-out call raises `McpServerError`,
whose `source` holds the cause (a `RequestTimeoutError` on timeout).

## What this package does not do

- It has no MCP server: tool handlers can be defined and called directly,
  but nothing serves them over a transport.
- The client ignores requests and notifications sent by the server; it only
  matches responses and errors to its own requests.
- There is no command-line program.