import logging

import pytest

import clipmod.diagnostics


def test_warnings_deduplicate_by_kind () -> None:

	"""Only the first message of each kind is kept."""

	log = clipmod.diagnostics.WarningLog()

	assert log.add(clipmod.diagnostics.WarningKind.SYNC_UNAVAILABLE, "sync skipped for clip-1") is True
	assert log.add(clipmod.diagnostics.WarningKind.SYNC_UNAVAILABLE, "sync skipped for clip-2") is False
	assert log.add(clipmod.diagnostics.WarningKind.EMPTY_SELECTION, "nothing selected") is True

	assert len(log) == 2
	assert log.kinds == [clipmod.diagnostics.WarningKind.SYNC_UNAVAILABLE, clipmod.diagnostics.WarningKind.EMPTY_SELECTION]
	assert log.messages == ["sync skipped for clip-1", "nothing selected"]


def test_warnings_are_logged_once (caplog: pytest.LogCaptureFixture) -> None:

	"""Each kind is logged when first recorded."""

	log = clipmod.diagnostics.WarningLog()

	with caplog.at_level(logging.WARNING, logger="clipmod.diagnostics"):
		log.add(clipmod.diagnostics.WarningKind.CLIP_NOT_FOUND, "missing clip-9")
		log.add(clipmod.diagnostics.WarningKind.CLIP_NOT_FOUND, "missing clip-10")

	assert len(caplog.records) == 1
	assert "clip-not-found" in caplog.records[0].getMessage()
