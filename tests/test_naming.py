"""Tests for collision-safe artifact naming."""

import threading

import pytest

from common.types import FinalArtifact
from reassembly.exceptions import RevisionExhaustedError
from reassembly.naming import NamingResolver, revision_pattern


class TestFinalArtifact:
    """Test target path splitting and revision names."""

    def test_from_target_path(self):
        artifact = FinalArtifact.from_target_path('a/b/report.json')

        assert artifact == FinalArtifact('a/b', 'report', '.json', 0)
        assert artifact.file_name == 'report.json'
        assert artifact.with_revision(3).file_name == 'report.3.json'

    def test_top_level_file(self):
        artifact = FinalArtifact.from_target_path('report.json')
        assert artifact.directory == '.'

    def test_only_last_extension_is_split(self):
        artifact = FinalArtifact.from_target_path('logs/archive.tar.gz')

        assert artifact.base_name == 'archive.tar'
        assert artifact.with_revision(1).file_name == 'archive.tar.1.gz'

    def test_no_extension(self):
        artifact = FinalArtifact.from_target_path('logs/README')

        assert artifact.extension == ''
        assert artifact.with_revision(2).file_name == 'README.2'


def test_revision_pattern():
    pattern = revision_pattern(FinalArtifact('.', 'report', '.json'))

    assert pattern.match('report.1.json')
    assert pattern.match('report.12.json')
    assert not pattern.match('report.json')
    assert not pattern.match('report.x.json')
    assert not pattern.match('reportX1.json')


class TestNamingResolver:
    """Test artifact writes into the output area."""

    @pytest.fixture
    def resolver(self, tmp_path):
        return NamingResolver(tmp_path / 'out')

    def test_first_write_uses_plain_name(self, resolver, tmp_path):
        artifact, path = resolver.write(FinalArtifact.from_target_path('a/b/report.json'), b'one')

        assert artifact.revision == 0
        assert path == tmp_path / 'out' / 'a' / 'b' / 'report.json'
        assert path.read_bytes() == b'one'

    def test_collisions_get_increasing_revisions(self, resolver, tmp_path):
        target = FinalArtifact.from_target_path('a/b/report.json')

        resolver.write(target, b'one')
        second, second_path = resolver.write(target, b'two')
        third, third_path = resolver.write(target, b'three')

        directory = tmp_path / 'out' / 'a' / 'b'
        assert second.revision == 1
        assert third.revision == 2
        assert (directory / 'report.json').read_bytes() == b'one'
        assert second_path.read_bytes() == b'two'
        assert third_path == directory / 'report.2.json'

    def test_skips_taken_revision(self, resolver, tmp_path):
        directory = tmp_path / 'out' / 'docs'
        directory.mkdir(parents=True)
        (directory / 'notes.txt').write_bytes(b'0')
        (directory / 'notes.2.txt').write_bytes(b'2')

        artifact, path = resolver.write(FinalArtifact.from_target_path('docs/notes.txt'), b'new')

        assert artifact.revision == 3
        assert (directory / 'notes.2.txt').read_bytes() == b'2'
        assert path.read_bytes() == b'new'

    def test_count_revisions(self, resolver, tmp_path):
        directory = tmp_path / 'out' / 'docs'
        directory.mkdir(parents=True)
        for name in ('notes.txt', 'notes.1.txt', 'notes.2.txt', 'other.1.txt', 'notes.1.csv'):
            (directory / name).write_bytes(b'')

        assert resolver.count_revisions(FinalArtifact.from_target_path('docs/notes.txt')) == 2

    def test_gives_up_after_max_attempts(self, tmp_path):
        resolver = NamingResolver(tmp_path / 'out', max_attempts=2)
        target = FinalArtifact.from_target_path('r.bin')
        resolver.write(target, b'0')
        (tmp_path / 'out' / 'r.3.bin').write_bytes(b'taken')
        (tmp_path / 'out' / 'r.4.bin').write_bytes(b'taken')

        with pytest.raises(RevisionExhaustedError):
            resolver.write(target, b'x')

    def test_concurrent_writers_never_share_a_name(self, resolver, tmp_path):
        target = FinalArtifact.from_target_path('a/report.json')
        results = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def write(index):
            barrier.wait()
            artifact, _ = resolver.write(target, f'{index}'.encode())
            with lock:
                results.append((artifact.file_name, index))

        threads = [threading.Thread(target=write, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        names = [name for name, _ in results]
        assert len(set(names)) == 8
        directory = tmp_path / 'out' / 'a'
        for name, index in results:
            assert (directory / name).read_bytes() == f'{index}'.encode()
