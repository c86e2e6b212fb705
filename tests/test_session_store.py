from datetime import timedelta
from unittest import TestCase

from app.backend.services.session_store import SessionMode, SessionStore


class SessionStoreTests(TestCase):
	def test_create_and_get_round_trip(self) -> None:
		store = SessionStore()
		session = store.create(SessionMode.LIVE)
		self.assertEqual(store.get(session.session_id), session)
		self.assertEqual(session.mode, SessionMode.LIVE)
		self.assertEqual(session.history, [])
		self.assertEqual(len(store), 1)

	def test_ids_are_unique(self) -> None:
		store = SessionStore()
		ids = {store.create(SessionMode.FALLBACK).session_id for _ in range(50)}
		self.assertEqual(len(ids), 50)

	def test_get_unknown_raises_key_error(self) -> None:
		with self.assertRaises(KeyError):
			SessionStore().get("missing")

	def test_set_mode_only_downgrades(self) -> None:
		store = SessionStore()
		session = store.create(SessionMode.LIVE)
		store.set_mode(session.session_id, SessionMode.FALLBACK)
		self.assertEqual(store.get(session.session_id).mode, SessionMode.FALLBACK)
		store.set_mode(session.session_id, SessionMode.FALLBACK)
		store.set_mode(session.session_id, SessionMode.LIVE)
		self.assertEqual(store.get(session.session_id).mode, SessionMode.FALLBACK)

	def test_append_history_keeps_order_and_caps_turns(self) -> None:
		store = SessionStore(max_turns=4)
		session = store.create(SessionMode.LIVE)
		for index in range(3):
			store.append_history(session.session_id, "user", f"question {index}")
			store.append_history(session.session_id, "assistant", f"answer {index}")
		pairs = store.get(session.session_id).history_pairs()
		self.assertEqual(
			pairs,
			[("user", "question 1"), ("assistant", "answer 1"), ("user", "question 2"), ("assistant", "answer 2")],
		)

	def test_unknown_role_is_stored_as_user(self) -> None:
		store = SessionStore()
		session = store.create(SessionMode.LIVE)
		store.append_history(session.session_id, "model", "text")
		self.assertEqual(store.get(session.session_id).history[0].role, "user")

	def test_sessions_never_expire_without_ttl(self) -> None:
		store = SessionStore()
		session = store.create(SessionMode.FALLBACK)
		session.updated_at -= timedelta(days=365)
		self.assertIs(store.get(session.session_id), session)

	def test_idle_sessions_expire_with_ttl(self) -> None:
		store = SessionStore(ttl_seconds=60)
		stale = store.create(SessionMode.FALLBACK)
		fresh = store.create(SessionMode.FALLBACK)
		stale.updated_at -= timedelta(seconds=120)
		with self.assertRaises(KeyError):
			store.get(stale.session_id)
		self.assertIs(store.get(fresh.session_id), fresh)
		self.assertEqual(len(store), 1)
