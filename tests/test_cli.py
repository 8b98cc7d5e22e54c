from __future__ import annotations

import copy
import json

import pytest

from handle_binding_generator.generate_bindings import main, parse_args


class TestParseArgs:
    def test_defaults(self):
        ns = parse_args(["--model", "m.json"])
        assert ns.overload_policy == "skip"
        assert ns.jobs == 1
        assert ns.include == []
        assert not ns.exclude_keywords

    def test_model_is_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestMain:
    def test_generates_header_and_manifest(self, tmp_path, model_file):
        out = tmp_path / "out" / "isl.h"
        assert main(["--model", str(model_file), "--output", str(out), "-q"]) == 0

        text = out.read_text()
        assert text.startswith("#ifndef ISL_CPP_ALL")
        assert "#include <isl/set.h>" in text
        assert "Set::Set(const BasicSet &bset) : Ptr(isl_set_from_basic_set(bset.copy())) {}" in text

        manifest = json.loads((tmp_path / "out" / "isl.h.manifest.json").read_text())
        assert manifest["class_count"] == 2

    def test_command_line_overrides(self, tmp_path, model_file):
        out = tmp_path / "wrap.h"
        argv = [
            "--model", str(model_file),
            "--output", str(out),
            "--namespace", "islpp",
            "--include", "isl/map.h",
            "--no-manifest",
            "-q",
        ]
        assert main(argv) == 0
        text = out.read_text()
        assert "namespace islpp {" in text
        assert "#include <isl/set.h>\n#include <isl/map.h>" in text
        assert not (tmp_path / "wrap.h.manifest.json").exists()

    def test_exclude_keywords(self, tmp_path, model_file):
        out = tmp_path / "isl.h"
        assert main(["--model", str(model_file), "--output", str(out), "--exclude-keywords", "--no-manifest", "-q"]) == 0
        assert "union(" not in out.read_text()

    def test_dry_run_writes_nothing(self, tmp_path, model_file):
        out = tmp_path / "isl.h"
        assert main(["--model", str(model_file), "--output", str(out), "--dry-run", "-q"]) == 0
        assert not out.exists()
        assert not (tmp_path / "isl.h.manifest.json").exists()

    def test_missing_model(self, tmp_path):
        assert main(["--model", str(tmp_path / "missing.json"), "--output", str(tmp_path / "x.h"), "-qq"]) == 2

    def test_malformed_model(self, tmp_path):
        path = tmp_path / "model.json"
        path.write_text(json.dumps({"classes": [{"constructors": []}]}))
        assert main(["--model", str(path), "--output", str(tmp_path / "x.h"), "-qq"]) == 2

    def test_overload_error_policy(self, tmp_path, model_document):
        path = tmp_path / "model.json"
        path.write_text(json.dumps(model_document))
        out = tmp_path / "isl.h"
        assert main(["--model", str(path), "--output", str(out), "--overload-policy", "error", "-qq"]) == 3
        assert not out.exists()

    def test_unwritable_output(self, tmp_path, model_file):
        blocker = tmp_path / "file"
        blocker.write_text("")
        assert main(["--model", str(model_file), "--output", str(blocker / "isl.h"), "-qq"]) == 4

    def test_unchanged_output_is_not_rewritten(self, tmp_path, model_file):
        out = tmp_path / "isl.h"
        argv = ["--model", str(model_file), "--output", str(out), "--no-manifest", "-q"]
        assert main(argv) == 0
        before = out.stat().st_mtime_ns
        assert main(argv) == 0
        assert out.stat().st_mtime_ns == before

    def test_parallel_jobs_match_serial(self, tmp_path, model_document):
        doc = copy.deepcopy(model_document)
        path = tmp_path / "model.json"
        path.write_text(json.dumps(doc))
        serial, parallel = tmp_path / "a.h", tmp_path / "b.h"
        assert main(["--model", str(path), "--output", str(serial), "--no-manifest", "-q"]) == 0
        assert main(["--model", str(path), "--output", str(parallel), "-j", "4", "--no-manifest", "-q"]) == 0
        assert serial.read_text() == parallel.read_text()
