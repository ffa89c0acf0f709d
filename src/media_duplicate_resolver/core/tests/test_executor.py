"""Tests for the action executor."""

import logging
from pathlib import Path

import pytest

from ..executor import ActionExecutor
from ..models import (
    DEFAULT_FOLDER_SIZE_THRESHOLD,
    ApplicationConfig,
    DuplicateGroup,
    FolderSizePolicy,
    MediaRecord,
    RankedRecord,
)


def write_file(path: Path, size: int) -> Path:
    """Create a (sparse) file of exactly ``size`` bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)
    return path


def snapshot_tree(root: Path) -> set[str]:
    return {str(p.relative_to(root)) for p in root.rglob("*")}


class TestActionExecutor:
    """Test cases for ActionExecutor."""

    @pytest.fixture(autouse=True)
    def library(self, tmp_path: Path) -> None:
        """Set up a library with one kept copy in its own folder."""
        self.root = tmp_path / "library"
        self.keep_path = write_file(self.root / "Keep" / "movie.mkv", 2000)
        self.executor = ActionExecutor()

    def create_group(self, *discard_paths: Path, keep_path: Path | None = None) -> DuplicateGroup:
        """Helper method to build a ranked group from paths."""
        keep = MediaRecord(
            id="keep", provider_ids={"Imdb": "tt001"}, path=str(keep_path or self.keep_path)
        )
        ranked = [RankedRecord(keep)]
        for i, path in enumerate(discard_paths):
            record = MediaRecord(id=f"dup{i}", provider_ids={"Imdb": "tt001"}, path=str(path))
            ranked.append(RankedRecord(record))
        return DuplicateGroup(key="Imdb", value="tt001", ranked=ranked)

    def test_live_deletes_file_and_small_folder(self) -> None:
        dup = write_file(self.root / "Dup" / "movie.mkv", 1000)
        write_file(self.root / "Dup" / "poster.jpg", 500)

        report = self.executor.execute([self.create_group(dup)], dry_run=False)

        assert report.to_text() == (
            f"File deleted {dup} (Imdb=tt001)\n"
            f"Folder deleted {dup.parent}.\n"
        )
        assert not dup.parent.exists()
        assert self.keep_path.exists()
        assert report.groups_found == 1
        assert report.files_deleted == 1
        assert report.folders_deleted == 1

    def test_dry_run_matches_live_and_leaves_files(self, tmp_path: Path) -> None:
        dup_a = write_file(self.root / "DupA" / "movie.mkv", 1000)
        dup_b = write_file(self.root / "DupB" / "movie.mkv", 1000)
        write_file(self.root / "DupB" / "extras" / "big.bin", DEFAULT_FOLDER_SIZE_THRESHOLD)
        group = self.create_group(dup_a, dup_b)
        before = snapshot_tree(self.root)

        dry_report = ActionExecutor().execute([group], dry_run=True)

        assert snapshot_tree(self.root) == before
        assert dry_report.dry_run is True

        live_report = ActionExecutor().execute([group], dry_run=False)

        assert dry_report.to_text() == live_report.to_text()
        assert live_report.to_text() == (
            f"File deleted {dup_a} (Imdb=tt001)\n"
            f"Folder deleted {dup_a.parent}.\n"
            f"File deleted {dup_b} (Imdb=tt001)\n"
        )
        assert not dup_a.parent.exists()
        assert not dup_b.exists()
        assert dup_b.parent.exists()

    def test_folder_at_threshold_is_kept(self) -> None:
        dup = write_file(self.root / "Dup" / "movie.mkv", 1000)
        write_file(self.root / "Dup" / "extra.bin", 20 * 1024 * 1024)

        report = self.executor.execute([self.create_group(dup)], dry_run=False)

        assert report.to_text() == f"File deleted {dup} (Imdb=tt001)\n"
        assert not dup.exists()
        assert dup.parent.exists()

    def test_folder_one_byte_under_threshold_is_removed(self) -> None:
        dup = write_file(self.root / "Dup" / "movie.mkv", 1000)
        write_file(self.root / "Dup" / "extra.bin", 20 * 1024 * 1024 - 1)

        report = self.executor.execute([self.create_group(dup)], dry_run=False)

        assert report.folders_deleted == 1
        assert not dup.parent.exists()

    def test_before_policy_counts_deleted_file(self) -> None:
        threshold = 1000
        dup = write_file(self.root / "Dup" / "movie.mkv", 10)
        write_file(self.root / "Dup" / "extra.bin", threshold - 5)
        config = ApplicationConfig(
            folder_size_threshold=threshold, folder_size_policy=FolderSizePolicy.BEFORE
        )

        report = ActionExecutor(config).execute([self.create_group(dup)], dry_run=True)
        assert report.folders_deleted == 0

        config = ApplicationConfig(folder_size_threshold=threshold)
        report = ActionExecutor(config).execute([self.create_group(dup)], dry_run=True)
        assert report.folders_deleted == 1

    def test_folder_removal_can_be_disabled(self) -> None:
        dup = write_file(self.root / "Dup" / "movie.mkv", 1000)
        executor = ActionExecutor(ApplicationConfig(remove_empty_folders=False))

        report = executor.execute([self.create_group(dup)], dry_run=False)

        assert report.folders_deleted == 0
        assert dup.parent.exists()

    def test_folder_holding_kept_copy_is_never_removed(self) -> None:
        dup = write_file(self.root / "Keep" / "movie.old.mkv", 1000)

        report = self.executor.execute([self.create_group(dup)], dry_run=False)

        assert report.to_text() == f"File deleted {dup} (Imdb=tt001)\n"
        assert self.keep_path.exists()

    def test_discard_sharing_kept_file_is_not_deleted(self) -> None:
        """Test two library items pointing at the same file."""
        group = self.create_group(self.keep_path)

        for dry_run in (True, False):
            report = ActionExecutor().execute([group], dry_run=dry_run)

            assert report.actions == []
            assert report.records_skipped == 1
            assert self.keep_path.exists()

    def test_kept_file_of_another_group_is_not_deleted(self) -> None:
        dup = write_file(self.root / "Dup" / "movie.mkv", 1000)
        first = self.create_group(dup)
        other_keep = MediaRecord(id="other", provider_ids={"Imdb": "tt002"}, path=str(dup))
        other_dup = write_file(self.root / "Other" / "movie.mkv", 1000)
        second = DuplicateGroup(
            key="Imdb",
            value="tt002",
            ranked=[
                RankedRecord(other_keep),
                RankedRecord(MediaRecord(id="odup", path=str(other_dup))),
            ],
        )

        report = self.executor.execute([first, second], dry_run=False)

        assert dup.exists()
        assert not other_dup.exists()
        assert report.to_text() == (
            f"File deleted {other_dup} (Imdb=tt002)\n"
            f"Folder deleted {other_dup.parent}.\n"
        )

    def test_folder_holding_another_groups_kept_copy_is_kept(self) -> None:
        collection = self.root / "Collection"
        kept_elsewhere = write_file(collection / "a.mkv", 1000)
        old_copy = write_file(collection / "b-old.mkv", 1000)
        first = self.create_group(keep_path=kept_elsewhere)
        second = self.create_group(old_copy)

        report = self.executor.execute([first, second], dry_run=False)

        assert not old_copy.exists()
        assert kept_elsewhere.exists()
        assert report.folders_deleted == 0

    def test_missing_file_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        missing = self.root / "Gone" / "movie.mkv"
        dup = write_file(self.root / "Dup" / "movie.mkv", 1000)

        with caplog.at_level(logging.WARNING):
            report = self.executor.execute([self.create_group(missing, dup)], dry_run=False)

        assert "File not found" in caplog.text
        assert report.records_skipped == 1
        assert report.files_deleted == 1
        assert not dup.exists()

    def test_record_without_path_is_skipped(self) -> None:
        group = self.create_group(self.keep_path)
        group.ranked[1] = RankedRecord(MediaRecord(id="nopath", provider_ids={"Imdb": "tt001"}))

        report = self.executor.execute([group], dry_run=False)

        assert report.actions == []
        assert report.records_skipped == 1

    def test_delete_failure_does_not_abort_batch(self, monkeypatch: pytest.MonkeyPatch) -> None:
        locked = write_file(self.root / "Locked" / "movie.mkv", 1000)
        dup = write_file(self.root / "Dup" / "movie.mkv", 1000)
        original_unlink = Path.unlink

        def fake_unlink(path: Path, *args, **kwargs) -> None:
            if path == locked:
                raise PermissionError(13, "Permission denied", str(path))
            original_unlink(path, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", fake_unlink)

        report = self.executor.execute([self.create_group(locked, dup)], dry_run=False)

        assert locked.exists()
        assert not dup.exists()
        assert report.records_skipped == 1
        assert report.to_text() == (
            f"File deleted {dup} (Imdb=tt001)\n"
            f"Folder deleted {dup.parent}.\n"
        )

    def test_dry_run_reports_unwritable_folder_as_skipped(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        dup = write_file(self.root / "Dup" / "movie.mkv", 1000)
        monkeypatch.setattr("os.access", lambda path, mode: False)

        report = self.executor.execute([self.create_group(dup)], dry_run=True)

        assert report.actions == []
        assert report.records_skipped == 1
        assert dup.exists()

    def test_singleton_groups_are_ignored(self) -> None:
        keep = MediaRecord(id="keep", path=str(self.keep_path))
        group = DuplicateGroup(key="Imdb", value="tt001", ranked=[RankedRecord(keep)])

        report = self.executor.execute([group], dry_run=False)

        assert report.groups_found == 0
        assert self.keep_path.exists()


class TestDirectorySize:
    """Test cases for ActionExecutor.directory_size."""

    def test_recursive_total(self, tmp_path: Path) -> None:
        write_file(tmp_path / "a.bin", 10)
        write_file(tmp_path / "sub" / "b.bin", 20)
        write_file(tmp_path / "sub" / "deeper" / "c.bin", 30)

        assert ActionExecutor().directory_size(tmp_path) == 60

    def test_missing_directory_is_zero(self, tmp_path: Path) -> None:
        assert ActionExecutor().directory_size(tmp_path / "missing") == 0
