"""Tests for file discovery and atomic writes."""
import os
import stat

from scriptdoctor.utils.file_system import FileSystem, MockFileSystem, is_ignored, matches_pattern


class TestPatterns:
    def test_double_star_matches_root_and_nested(self):
        assert matches_pattern('app.js', '**/*.js')
        assert matches_pattern('src/deep/app.js', '**/*.js')
        assert not matches_pattern('src/app.ts', '**/*.js')

    def test_ignored_directories_and_globs(self):
        ignore = ('node_modules', '*.min.js')
        assert is_ignored('node_modules/x/index.js', ignore)
        assert is_ignored('public/vendor.min.js', ignore)
        assert not is_ignored('src/node_modules.js', ignore)


class TestFileSystem:
    def test_find_files(self, tmp_path):
        (tmp_path / 'src').mkdir()
        (tmp_path / 'src' / 'b.ts').write_text("", encoding='utf-8')
        (tmp_path / 'a.js').write_text("", encoding='utf-8')
        (tmp_path / 'types.d.ts').write_text("", encoding='utf-8')
        (tmp_path / 'dist').mkdir()
        (tmp_path / 'dist' / 'bundle.js').write_text("", encoding='utf-8')

        found = FileSystem().find_files(tmp_path)

        assert [p.relative_to(tmp_path.resolve()).as_posix() for p in found] == ['a.js', 'src/b.ts']

    def test_write_file_atomic_keeps_mode(self, tmp_path):
        path = tmp_path / 'run.js'
        path.write_text("old\n", encoding='utf-8')
        path.chmod(0o755)

        FileSystem().write_file_atomic(path, b"new\n")

        assert path.read_bytes() == b"new\n"
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o755
        assert sorted(p.name for p in tmp_path.iterdir()) == ['run.js']


class TestMockFileSystem:
    def test_round_trip_and_write_log(self):
        fs = MockFileSystem({'/p/a.js': "x"})
        fs.write_file_atomic('/p/a.js', b"y")
        assert fs.read_text('/p/a.js') == "y"
        assert [str(p) for p in fs.writes] == ['/p/a.js']
        assert fs.exists('/p/a.js')
        assert not fs.exists('/p/b.js')
