import pytest

from config.types import DecompilerPreferences
from decompile_tools.dispatcher import (
    DECOMPILING_CLASSES,
    UNPACKING,
    PipelineDispatcher,
    Stage,
    chain_for,
)
from decompile_tools.types import Artifact, ArtifactKind


@pytest.mark.parametrize(
    "path,kind",
    [
        ("/tmp/app.apk", ArtifactKind.ANDROID_PACKAGE),
        ("/tmp/App.APK", ArtifactKind.ANDROID_PACKAGE),
        ("/tmp/Main.class", ArtifactKind.JAVA_CLASS_OR_JAR),
        ("/tmp/lib.jar", ArtifactKind.JAVA_CLASS_OR_JAR),
        ("/tmp/a.out", ArtifactKind.NATIVE),
        ("/tmp/libfoo.so", ArtifactKind.NATIVE),
        ("/tmp/noextension", ArtifactKind.NATIVE),
    ],
)
def test_artifact_kind_from_extension(path, kind):
    assert Artifact.from_path(path).kind == kind


def test_artifact_names():
    artifact = Artifact.from_path("/tmp/dir/app.release.apk")
    assert artifact.basename == "app.release.apk"


def test_native_defaults_to_ghidra():
    assert chain_for(ArtifactKind.NATIVE, DecompilerPreferences()) == (Stage("ghidra"),)


@pytest.mark.parametrize("choice", ["idaPro", "idaPro (64-bit)"])
def test_native_with_ida_preference(choice):
    prefs = DecompilerPreferences(default_decompiler=choice)
    assert chain_for(ArtifactKind.NATIVE, prefs) == (Stage("ida"),)


def test_java_chains():
    assert chain_for(ArtifactKind.JAVA_CLASS_OR_JAR, DecompilerPreferences()) == (Stage("jadx"),)
    prefs = DecompilerPreferences(java_decompiler="jd-cli")
    assert chain_for(ArtifactKind.JAVA_CLASS_OR_JAR, prefs) == (Stage("jd-cli"),)


def test_apk_chains():
    assert chain_for(ArtifactKind.ANDROID_PACKAGE, DecompilerPreferences()) == (Stage("jadx"),)

    prefs = DecompilerPreferences(apk_decompiler="jd-cli")
    chain = chain_for(ArtifactKind.ANDROID_PACKAGE, prefs)
    assert [stage.tool_id for stage in chain] == ["dex2jar", "jd-cli"]
    assert chain[0].announce == UNPACKING
    assert chain[1].announce == DECOMPILING_CLASSES
    assert UNPACKING.increment_percent == 2
    assert DECOMPILING_CLASSES.increment_percent == 5


def test_java_preference_does_not_affect_apk():
    prefs = DecompilerPreferences(java_decompiler="jd-cli")
    assert chain_for(ArtifactKind.ANDROID_PACKAGE, prefs) == (Stage("jadx"),)


def test_selection_is_pure():
    prefs = DecompilerPreferences(apk_decompiler="jd-cli")
    first = chain_for(ArtifactKind.ANDROID_PACKAGE, prefs)
    second = chain_for(ArtifactKind.ANDROID_PACKAGE, prefs)
    assert first == second


def test_dispatcher_reads_current_preferences(settings):
    dispatcher = PipelineDispatcher(settings)
    assert dispatcher.select(ArtifactKind.JAVA_CLASS_OR_JAR) == (Stage("jadx"),)
    settings.settings["java_decompiler"] = "jd-cli"
    assert dispatcher.select(ArtifactKind.JAVA_CLASS_OR_JAR) == (Stage("jd-cli"),)
