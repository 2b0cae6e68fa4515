"""
Tests for closure building and the public resolution API.
"""

from pathlib import Path
from types import SimpleNamespace

import pytest

from scriptlens.exceptions import ConfigError, ImportNotFoundError, ProbeError
from scriptlens.resolution import (
    ClosureBuilder,
    CompanionLibrary,
    LoadBasedDeduplicator,
    SearchPathProvider,
    get_project_files,
    resolve_script_closure,
)
from scriptlens.schemas import DedupStrategy
from scriptlens.user_config import UserConfig


@pytest.fixture
def builder(lens_paths, package_resolver, no_companion):
    """A builder with no global search dirs and no host companion."""
    return ClosureBuilder(
        search_path_provider=SearchPathProvider(environ={}),
        package_resolver=package_resolver,
        paths=lens_paths,
        companion=no_companion,
    )


class TestSourceFiles:

    def test_script_alone(self, builder, tmp_path, write_file):
        script = write_file(tmp_path / "main.cs", "void main() {}\n")

        closure = builder.resolve(str(script))

        assert closure.source_files == [str(script.resolve())]
        assert closure.libraries == []
        assert closure.script == str(script.resolve())

    def test_imports_come_first_script_last(self, builder, tmp_path, write_file, make_library):
        script = write_file(tmp_path / "main.cs", "//css_inc a.cs\n//css_inc b.cs\n")
        a = write_file(tmp_path / "a.cs", "using Alpha;\n")
        b = write_file(tmp_path / "b.cs", "using Beta;\n")
        alpha = make_library(tmp_path / "Alpha.dll")
        beta = make_library(tmp_path / "Beta.dll")
        make_library(builder.paths.user_scripts_dir / "Beta.dll")

        closure = builder.resolve(str(script))

        assert closure.source_files == [str(a.resolve()), str(b.resolve()), str(script.resolve())]
        assert closure.libraries == [str(alpha.resolve()), str(beta.resolve())]

    def test_missing_import_propagates(self, builder, tmp_path, write_file):
        script = write_file(tmp_path / "main.cs", "//css_inc missing.cs\n")

        with pytest.raises(ImportNotFoundError):
            builder.resolve(str(script))


class TestLibraries:

    def test_namespace_library_next_to_script(self, builder, tmp_path, write_file, make_library):
        script = write_file(tmp_path / "main.cs", "using Acme.Utils;\n")
        lib = make_library(tmp_path / "Acme.dll")

        closure = builder.resolve(str(script))

        assert closure.libraries == [str(lib.resolve())]

    def test_ignored_namespaces_are_not_resolved(self, builder, tmp_path, write_file, make_library):
        script = write_file(tmp_path / "main.cs", "using System;\nusing Legacy;\n//css_ignore_ns Legacy\n")
        make_library(tmp_path / "System.dll")
        make_library(tmp_path / "Legacy.dll")

        assert builder.resolve(str(script)).libraries == []

    def test_explicit_reference(self, builder, tmp_path, write_file, make_library):
        script = write_file(tmp_path / "main.cs", '//css_ref "libs/Tools.dll";\n')
        lib = make_library(tmp_path / "libs" / "Tools.dll")

        closure = builder.resolve(str(script))

        assert [Path(p).resolve() for p in closure.libraries] == [lib.resolve()]

    def test_local_package(self, builder, tmp_path, write_file, make_library):
        script = write_file(tmp_path / "main.cs", "//css_nuget NLog\n")
        lib = make_library(tmp_path / "packages" / "nlog" / "5.1.0" / "lib" / "net46" / "NLog.dll")

        assert builder.resolve(str(script)).libraries == [str(lib)]

    def test_library_in_user_scripts_dir(self, builder, tmp_path, write_file, make_library):
        script = write_file(tmp_path / "main.cs", "using Shared;\n")
        lib = make_library(builder.paths.user_scripts_dir / "Shared.dll")

        closure = builder.resolve(str(script))

        assert closure.libraries == [str(lib)]

    def test_global_search_dirs(self, lens_paths, package_resolver, no_companion, tmp_path, write_file, make_library):
        engine = tmp_path / "engine"
        lib = make_library(engine / "Lib" / "Acme.dll")
        script = write_file(tmp_path / "scripts" / "main.cs", "using Acme;\n")
        builder = ClosureBuilder(
            search_path_provider=SearchPathProvider(environ={"CSSCRIPT_DIR": str(engine)}),
            package_resolver=package_resolver,
            paths=lens_paths,
            companion=no_companion,
        )

        closure = builder.resolve(str(script))

        assert closure.libraries == [str(lib)]
        assert str(engine / "Lib") in closure.search_dirs

    def test_custom_deduplicator(self, lens_paths, package_resolver, no_companion, tmp_path, write_file, make_library):
        class SameIdentityProbe:
            def __enter__(self):
                return self

            def __exit__(self, *exc):
                pass

            def identities(self, paths):
                return {p: "Shared" for p in paths}

        script = write_file(tmp_path / "main.cs", "using Alpha;\nusing Beta;\n")
        alpha = make_library(tmp_path / "Alpha.dll")
        make_library(tmp_path / "Beta.dll")
        builder = ClosureBuilder(
            search_path_provider=SearchPathProvider(environ={}),
            package_resolver=package_resolver,
            paths=lens_paths,
            companion=no_companion,
            deduplicator=LoadBasedDeduplicator(probe_factory=SameIdentityProbe),
        )

        assert builder.resolve(str(script)).libraries == [str(alpha.resolve())]

    def test_broken_identity_check_reports_filename_strategy(
        self, lens_paths, package_resolver, no_companion, tmp_path, write_file, make_library
    ):
        def unavailable_worker():
            raise ProbeError("worker exited with 1")

        script = write_file(tmp_path / "main.cs", "using Acme;\n")
        make_library(tmp_path / "Acme.dll")
        builder = ClosureBuilder(
            search_path_provider=SearchPathProvider(environ={}),
            package_resolver=package_resolver,
            paths=lens_paths,
            companion=no_companion,
            deduplicator=LoadBasedDeduplicator(probe_factory=unavailable_worker),
        )

        closure = builder.resolve(str(script))

        assert [Path(p).name for p in closure.libraries] == ["Acme.dll"]
        assert closure.dedup_strategy is DedupStrategy.FILENAME

    def test_default_strategy_is_reported(self, builder, tmp_path, write_file):
        script = write_file(tmp_path / "main.cs", "")

        assert builder.resolve(str(script)).dedup_strategy is DedupStrategy.FILENAME


class TestSearchDirs:

    def test_order_script_then_global_then_user(self, builder, tmp_path, write_file):
        script = write_file(tmp_path / "app" / "main.cs", "//css_dir ../lib\n")

        closure = builder.resolve(str(script))

        assert closure.search_dirs == [
            str(script.parent.resolve()),
            str((tmp_path / "lib").resolve()),
            str(builder.paths.user_scripts_dir),
        ]

    def test_user_scripts_dir_is_created(self, builder, tmp_path, write_file):
        script = write_file(tmp_path / "main.cs", "")

        builder.resolve(str(script))

        assert (tmp_path / "Documents" / "NppScripts").is_dir()


class TestCompanionLibrary:

    def test_companion_is_appended(self, lens_paths, package_resolver, tmp_path, write_file):
        modules = {
            "nppscripts.editor": SimpleNamespace(__file__="/host/nppscripts/editor.py"),
            "nppscripts": SimpleNamespace(__file__="/host/nppscripts/__init__.py"),
            "other": SimpleNamespace(__file__="/other.py"),
        }
        builder = ClosureBuilder(
            search_path_provider=SearchPathProvider(environ={}),
            package_resolver=package_resolver,
            paths=lens_paths,
            companion=CompanionLibrary(modules=lambda: modules),
        )
        script = write_file(tmp_path / "main.cs", "")

        assert builder.resolve(str(script)).libraries == ["/host/nppscripts/__init__.py"]

    def test_lookup_is_memoized(self):
        calls = []

        def modules():
            calls.append(1)
            return {}

        companion = CompanionLibrary(modules=modules)

        assert companion.path is None
        assert companion.path is None
        assert len(calls) == 1

    def test_modules_without_files_are_ignored(self):
        companion = CompanionLibrary(modules=lambda: {"nppscripts": SimpleNamespace()})

        assert companion.path is None


class TestFacade:

    def test_resolve_script_closure_uses_config(self, tmp_path, write_file, make_library, lens_paths, package_resolver, no_companion):
        script = write_file(tmp_path / "main.cs", "using Acme;\nusing Extra;\n")
        make_library(tmp_path / "Acme.dll")
        make_library(tmp_path / "Extra.dll")
        write_file(tmp_path / "project" / ".scriptlens" / "config.json", '{"resolution": {"ignore_namespaces": ["Extra"]}}')
        config = UserConfig(project_root=tmp_path / "project", global_config_path=tmp_path / "none.json")

        closure = resolve_script_closure(
            str(script),
            config=config,
            paths=lens_paths,
            package_resolver=package_resolver,
            companion=no_companion,
            search_path_provider=SearchPathProvider(environ={}),
        )

        assert [Path(p).name for p in closure.libraries] == ["Acme.dll"]

    def test_get_project_files_returns_pair(self, tmp_path, write_file, lens_paths, package_resolver, no_companion):
        script = write_file(tmp_path / "main.cs", "")

        sources, libraries = get_project_files(
            str(script),
            paths=lens_paths,
            package_resolver=package_resolver,
            companion=no_companion,
        )

        assert sources == [str(script.resolve())]
        assert libraries == []

    def test_configured_companion_prefix(self, tmp_path, write_file, lens_paths):
        write_file(tmp_path / "project" / ".scriptlens" / "config.json", '{"host": {"companion_prefix": "myhost"}}')
        config = UserConfig(project_root=tmp_path / "project", global_config_path=tmp_path / "none.json")

        builder = ClosureBuilder.from_config(config, paths=lens_paths)

        assert builder.companion.prefix == "myhost"

    def test_unknown_configured_strategy(self, tmp_path, write_file, lens_paths):
        write_file(tmp_path / "project" / ".scriptlens" / "config.json", '{"resolution": {"dedup_strategy": "checksum"}}')
        config = UserConfig(project_root=tmp_path / "project", global_config_path=tmp_path / "none.json")

        with pytest.raises(ConfigError):
            ClosureBuilder.from_config(config, paths=lens_paths)
