"""A transport that talks to a child process over its stdin and stdout."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Mapping, Sequence

from .protocol import (
    InvalidMessageError,
    JsonRpcError,
    JsonRpcMessage,
    JsonRpcRequest,
    JsonRpcResponse,
    message_from_json,
    message_to_json,
)
from .transport import (
    ChannelClosedError,
    PendingRequests,
    SerializationError,
    StdioProcessError,
    Transport,
    TransportError,
    TransportHandle,
    _ClosableQueue,
    send_message,
)

logger = logging.getLogger(__name__)

_READ_LIMIT = 16 * 1024 * 1024
_CREATE_NO_WINDOW = 0x08000000
_QUEUE_SIZE = 32
_CLOSE_TIMEOUT = 5.0


class _StdioActor:
    """Moves messages between the outgoing queue and the child process."""

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        queue: _ClosableQueue,
        errors: asyncio.Queue,
    ) -> None:
        self._process = process
        self._queue = queue
        self._errors = errors
        self._pending = PendingRequests()

    async def run(self) -> None:
        try:
            await self._serve()
            await self._report_stderr()
        finally:
            self._pending.clear()
            self._queue.close()
            await self._terminate()

    async def _serve(self) -> None:
        tasks = {
            asyncio.ensure_future(self._incoming()),
            asyncio.ensure_future(self._outgoing()),
            asyncio.ensure_future(self._process.wait()),
        }
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _report_stderr(self) -> None:
        try:
            data = await self._process.stderr.read()
        except OSError:
            return
        message = data.decode("utf-8", "replace") if data else "Process ended unexpectedly"
        logger.info("Process stderr: %s", message)
        try:
            self._errors.put_nowait(StdioProcessError(message))
        except asyncio.QueueFull:
            pass

    async def _terminate(self) -> None:
        if self._process.returncode is None:
            try:
                self._process.kill()
            except ProcessLookupError:
                pass
        await self._process.wait()

    async def _incoming(self) -> None:
        stdout = self._process.stdout
        while True:
            try:
                line = await stdout.readline()
            except (OSError, ValueError) as exc:
                logger.error("Error reading line: %s", exc)
                break
            if not line:
                logger.error("Child process ended (EOF on stdout)")
                break
            try:
                message = message_from_json(line)
            except InvalidMessageError:
                continue
            logger.debug("Received incoming message: %r", message)
            if isinstance(message, (JsonRpcResponse, JsonRpcError)) and message.id is not None:
                self._pending.respond(str(message.id), message)

    async def _outgoing(self) -> None:
        stdin = self._process.stdin
        try:
            while True:
                item = await self._queue.get()
                if item is None:
                    break
                response = item.response
                try:
                    text = message_to_json(item.message)
                except (TypeError, ValueError) as exc:
                    if response is not None and not response.done():
                        response.set_exception(SerializationError(str(exc)))
                    continue
                logger.debug("Sending outgoing message: %r", item.message)
                if response is not None:
                    message = item.message
                    if isinstance(message, JsonRpcRequest) and message.id is not None:
                        self._pending.insert(str(message.id), response)
                    elif not response.done():
                        response.set_exception(ChannelClosedError())
                try:
                    stdin.write(text.encode("utf-8") + b"\n")
                    await stdin.drain()
                except OSError as exc:
                    logger.error("Error writing message to child process: %s", exc)
                    self._pending.clear()
                    break
        finally:
            stdin.close()


class StdioTransportHandle(TransportHandle):
    """Sends messages to a child process and reports its failure."""

    def __init__(self, sender: _ClosableQueue, errors: asyncio.Queue) -> None:
        self._sender = sender
        self._errors = errors

    async def send(self, message: JsonRpcMessage) -> JsonRpcMessage:
        """Send a message; a process failure takes precedence over the send's own result."""
        try:
            result = await send_message(self._sender, message)
        except TransportError:
            await self.check_for_errors()
            raise
        await self.check_for_errors()
        return result

    async def check_for_errors(self) -> None:
        """Raise the child process's error, if one has been reported."""
        try:
            error = self._errors.get_nowait()
        except asyncio.QueueEmpty:
            return
        logger.debug("Found error: %r", error)
        raise error


class StdioTransport(Transport):
    """Starts a command and exchanges newline-delimited JSON-RPC over its pipes."""

    def __init__(
        self,
        command: str,
        args: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.command = command
        self.args = list(args)
        self.env = dict(env or {})
        self._running: list[tuple[_ClosableQueue, asyncio.Task]] = []

    async def _spawn(self) -> asyncio.subprocess.Process:
        options: dict[str, object] = {}
        if os.name == "nt":
            options["creationflags"] = _CREATE_NO_WINDOW
        else:
            options["start_new_session"] = True
        try:
            return await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env={**os.environ, **self.env},
                limit=_READ_LIMIT,
                **options,
            )
        except (OSError, ValueError) as exc:
            raise StdioProcessError(str(exc)) from exc

    async def start(self) -> StdioTransportHandle:
        process = await self._spawn()
        queue = _ClosableQueue(_QUEUE_SIZE)
        errors: asyncio.Queue = asyncio.Queue(1)
        task = asyncio.create_task(_StdioActor(process, queue, errors).run())
        self._running.append((queue, task))
        return StdioTransportHandle(queue, errors)

    async def close(self) -> None:
        """Stop accepting messages on every started handle and wait for the processes to end."""
        running, self._running = self._running, []
        for queue, _ in running:
            queue.close()
        tasks = [task for _, task in running]
        if not tasks:
            return
        _, unfinished = await asyncio.wait(tasks, timeout=_CLOSE_TIMEOUT)
        for task in unfinished:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)