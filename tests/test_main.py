import os
import shutil
import tempfile

import pytest

from proto_schema.main import run
from proto_schema.models import Label
from proto_schema.parser.errors import ErrorKind, ProtoSyntaxError
from proto_schema.parser.schema_parser import parse_proto_file


PERSON_PROTO = """\
package person;

import "common.proto";

/** A person. */
message Person {
  required string name = 1;
  optional string email = 2 [deprecated="true"];
}

enum Status {
  ACTIVE = 0;
  INACTIVE = 1;
}
"""

ADDRESS_PROTO = """\
message Address {
  required string street = 1;
  optional int32 zip = 2 [default="0"];
}
"""


def _write_temp_proto(content: str) -> str:
    fd, path = tempfile.mkstemp(suffix=".proto")
    os.write(fd, content.encode())
    os.close(fd)
    return path


class TestParseProtoFile:
    def test_reads_and_labels_file(self):
        path = _write_temp_proto(PERSON_PROTO)
        try:
            proto = parse_proto_file(path)
            assert proto.file_name == path
            assert proto.package_name == "person"
            assert proto.dependencies == ("common.proto",)
            assert proto.message_types[0].documentation == "A person."
            assert proto.message_types[0].fields[0].label is Label.REQUIRED
            assert [v.name for v in proto.enum_types[0].values] == ["ACTIVE", "INACTIVE"]
        finally:
            os.unlink(path)

    def test_syntax_error_raised(self):
        path = _write_temp_proto("message Broken {\n  required int32 id = 1\n}\n")
        try:
            with pytest.raises(ProtoSyntaxError) as excinfo:
                parse_proto_file(path)
            assert excinfo.value.kind is ErrorKind.EXPECTED_SEMICOLON
            assert excinfo.value.line == 3
        finally:
            os.unlink(path)

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            parse_proto_file(os.path.join(tempfile.gettempdir(), "does-not-exist.proto"))


class TestRun:
    def setup_method(self):
        self.work_dir = tempfile.mkdtemp()
        with open(os.path.join(self.work_dir, "person.proto"), "w") as f:
            f.write(PERSON_PROTO)
        os.makedirs(os.path.join(self.work_dir, "nested"))
        with open(os.path.join(self.work_dir, "nested", "address.proto"), "w") as f:
            f.write(ADDRESS_PROTO)
        with open(os.path.join(self.work_dir, "notes.txt"), "w") as f:
            f.write("not a schema")

    def teardown_method(self):
        shutil.rmtree(self.work_dir)

    def test_scans_directory_recursively(self, capsys):
        parsed = run([self.work_dir])
        assert sorted(p.file_name for p in parsed) == sorted([
            os.path.join(self.work_dir, "nested", "address.proto"),
            os.path.join(self.work_dir, "person.proto"),
        ])

        out = capsys.readouterr().out
        assert "package person, 1 import(s), 1 message(s), 1 enum(s)" in out
        assert "package (none), 0 import(s), 1 message(s), 0 enum(s)" in out

    def test_single_file(self, capsys):
        path = os.path.join(self.work_dir, "person.proto")
        parsed = run([path])
        assert len(parsed) == 1
        assert f"Parsed {path}" in capsys.readouterr().out

    def test_verbose_lists_members(self, capsys):
        run([os.path.join(self.work_dir, "nested")], verbose=True)
        out = capsys.readouterr().out
        assert "message Address (2 field(s))" in out
        assert "required string street = 1" in out
        assert "optional int32 zip = 2 (default 0)" in out

    def test_verbose_marks_deprecated(self, capsys):
        run([os.path.join(self.work_dir, "person.proto")], verbose=True)
        out = capsys.readouterr().out
        assert "optional string email = 2 [deprecated]" in out
        assert "enum Status (2 value(s))" in out

    def test_no_proto_files(self, capsys):
        empty_dir = os.path.join(self.work_dir, "empty")
        os.makedirs(empty_dir)
        with pytest.raises(SystemExit) as excinfo:
            run([empty_dir])
        assert excinfo.value.code == 1
        assert "No .proto files found" in capsys.readouterr().out

    def test_syntax_error_is_fatal(self, capsys):
        bad_path = os.path.join(self.work_dir, "bad.proto")
        with open(bad_path, "w") as f:
            f.write("required int32 id = 1;\n")
        with pytest.raises(SystemExit) as excinfo:
            run([bad_path])
        assert excinfo.value.code == 1
        err = capsys.readouterr().err
        assert "FATAL" in err
        assert "fields must be nested" in err

    def test_missing_file_is_fatal(self, capsys):
        with pytest.raises(SystemExit):
            run([os.path.join(self.work_dir, "missing.proto")])
        assert "FATAL" in capsys.readouterr().err

    def test_invalid_utf8_is_fatal(self, capsys):
        bad_path = os.path.join(self.work_dir, "binary.proto")
        with open(bad_path, "wb") as f:
            f.write(b"message M { \xff }")
        with pytest.raises(SystemExit) as excinfo:
            run([bad_path])
        assert excinfo.value.code == 1
        assert "FATAL" in capsys.readouterr().err
