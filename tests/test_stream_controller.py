from unittest import IsolatedAsyncioTestCase

from app.backend.errors import StreamingFault
from app.backend.services.stream_controller import StreamController


async def _drain(handle):
	return [chunk async for chunk in handle.sink.chunks()]


class _BrokenSink:
	def __init__(self) -> None:
		self.closed = False

	def write(self, chunk: str) -> None:
		raise ConnectionResetError("client went away")

	def close(self) -> None:
		self.closed = True


class StreamControllerTests(IsolatedAsyncioTestCase):
	async def test_write_then_end_delivers_units_with_trailing_space(self) -> None:
		streams = StreamController()
		handle = streams.begin("s1")
		self.assertTrue(streams.is_active("s1"))
		self.assertTrue(streams.write(handle, "Hello"))
		self.assertTrue(streams.write(handle, "rider"))
		streams.end(handle)
		self.assertEqual(await _drain(handle), ["Hello ", "rider "])
		self.assertFalse(handle.open)
		self.assertFalse(streams.is_active("s1"))
		self.assertEqual(len(streams), 0)

	async def test_write_after_end_is_dropped(self) -> None:
		streams = StreamController()
		handle = streams.begin("s1")
		streams.end(handle)
		self.assertFalse(streams.write(handle, "late"))
		self.assertEqual(await _drain(handle), [])
		self.assertEqual(handle.units_written, 0)

	async def test_begin_evicts_existing_handle_for_same_session(self) -> None:
		streams = StreamController()
		first = streams.begin("s1")
		streams.write(first, "one")
		second = streams.begin("s1")
		self.assertFalse(first.open)
		self.assertTrue(second.open)
		self.assertEqual(len(streams), 1)
		self.assertEqual(await _drain(first), ["one "])
		# Ending the evicted handle again must not release the new one.
		streams.end(first)
		self.assertTrue(streams.is_active("s1"))

	async def test_streams_for_different_sessions_are_independent(self) -> None:
		streams = StreamController()
		first = streams.begin("s1")
		second = streams.begin("s2")
		self.assertTrue(first.open)
		self.assertTrue(second.open)
		self.assertEqual(len(streams), 2)

	async def test_interrupt_is_idempotent(self) -> None:
		streams = StreamController()
		handle = streams.begin("s1")
		self.assertTrue(streams.interrupt("s1"))
		self.assertFalse(handle.open)
		self.assertFalse(streams.interrupt("s1"))
		self.assertFalse(streams.interrupt("never-started"))

	async def test_sink_failure_closes_handle_and_raises_streaming_fault(self) -> None:
		streams = StreamController()
		sink = _BrokenSink()
		handle = streams.begin("s1", sink)
		with self.assertRaises(StreamingFault):
			streams.write(handle, "word")
		self.assertFalse(handle.open)
		self.assertTrue(sink.closed)
		self.assertFalse(streams.is_active("s1"))
