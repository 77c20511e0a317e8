"""Tests for the end-to-end VRM parser."""
import json
import os
import shutil
import struct
import sys
import tempfile

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from vrm_extractor.gltf_loader import GltfLoader
from vrm_extractor.vrm_errors import NoVrmExtensionError, VrmIOError, VrmJsonDecodeError
from vrm_extractor.vrm_parser import VrmParser, extract_to_temp, extracted_copy
from vrm_extractor.vrm_types import Vrm0Extension, Vrm1Extension


def build_glb(gltf_json, bin_chunks=()):
    """Build a GLB buffer from a JSON object and binary chunk payloads."""
    json_data = json.dumps(gltf_json).encode("utf-8")
    json_data += b" " * (-len(json_data) % 4)

    body = struct.pack("<II", len(json_data), 0x4E4F534A) + json_data
    for chunk in bin_chunks:
        chunk += b"\x00" * (-len(chunk) % 4)
        body += struct.pack("<II", len(chunk), 0x004E4942) + chunk

    header = struct.pack("<III", 0x46546C67, 2, 12 + len(body))
    return header + body


def create_test_vrm(tmpdir, extensions, name="model.vrm"):
    """Write a small VRM file with two nodes, one mesh and one buffer."""
    gltf_json = {
        "asset": {"version": "2.0", "generator": "test"},
        "nodes": [{"name": "Root", "children": [1]}, {"name": "Hips"}],
        "meshes": [{"name": "Body", "primitives": []}],
        "materials": [{"name": "Skin"}],
        "buffers": [{"byteLength": 8}],
        "scenes": [{"nodes": [0]}],
        "scene": 0,
        "extensionsUsed": sorted(extensions),
        "extensions": extensions,
    }
    path = os.path.join(tmpdir, name)
    with open(path, "wb") as f:
        f.write(build_glb(gltf_json, [b"\x00" * 8]))
    return path


VRM0_EXTENSIONS = {
    "VRM": {
        "meta": {"title": "Zero", "author": "Maker", "allowedUserName": "OnlyAuthor"},
        "humanoid": {"humanBones": [{"bone": "hips", "node": 1}]},
        "blendShapeMaster": {"blendShapeGroups": [{"name": "Joy"}]},
    }
}

VRM1_EXTENSIONS = {
    "VRMC_vrm": {
        "specVersion": "1.0",
        "meta": {"name": "One", "title": "One", "authors": [{"name": "A1"}, {"name": "A2"}]},
        "humanoid": {"humanBones": {"hips": {"node": 1}}},
        "expressions": {"preset": {"happy": {}}},
    }
}


def always_fail(path, profile):
    raise RuntimeError(f"cannot decode with {profile.name}")


def test_parse_vrm_0_0():
    """Should parse a VRM 0.0 file end to end."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = create_test_vrm(tmpdir, VRM0_EXTENSIONS)
        result = VrmParser().parse_vrm(path)

    assert result.version == "0.0"
    assert isinstance(result.vrm_extensions, Vrm0Extension)
    assert result.gltf.degraded is False
    assert [n.name for n in result.gltf.nodes] == ["Root", "Hips"]
    assert result.metadata.title == "Zero"
    assert result.metadata.author == "Maker"
    assert result.metadata.usage["allowedUserName"] == "OnlyAuthor"
    assert result.metadata.humanoid_bones == [{"bone": "hips", "node": 1}]
    assert result.metadata.expressions == [{"name": "Joy"}]


def test_parse_vrm_1_0():
    """Should parse a VRM 1.0 file end to end."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = create_test_vrm(tmpdir, VRM1_EXTENSIONS)
        result = VrmParser().parse_vrm(path)

    assert result.version == "1.0"
    assert isinstance(result.vrm_extensions, Vrm1Extension)
    assert result.metadata.author == "A1"
    assert result.metadata.expressions == {"happy": {}}
    assert result.metadata.blend_shapes is None
    assert "VRMC_vrm" in result.gltf.extensions


def test_parse_is_idempotent():
    """Parsing the same file twice yields identical metadata."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = create_test_vrm(tmpdir, VRM0_EXTENSIONS)
        parser = VrmParser()
        first = parser.parse_vrm(path)
        second = parser.parse_vrm(path)

    assert first.metadata == second.metadata
    assert first.metadata.to_json().encode("utf-8") == second.metadata.to_json().encode("utf-8")


def test_parse_degraded_when_decoder_fails():
    """Should still return metadata when structured decoding fails."""
    parser = VrmParser(loader=GltfLoader(decoder=always_fail))

    with tempfile.TemporaryDirectory() as tmpdir:
        path = create_test_vrm(tmpdir, VRM1_EXTENSIONS)
        result = parser.parse_vrm(path)

    assert result.gltf.degraded is True
    assert result.gltf.nodes == [{"name": "Root", "children": [1]}, {"name": "Hips"}]
    assert result.gltf.scenes == []
    assert result.version == "1.0"
    assert result.metadata.title == "One"


def test_parse_no_vrm_extension():
    """Should raise for a plain glTF file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = create_test_vrm(tmpdir, {"KHR_materials_unlit": {}})
        with pytest.raises(NoVrmExtensionError):
            VrmParser().parse_vrm(path)


def test_parse_invalid_json_is_terminal():
    """Should raise for an unreadable JSON chunk before decoding."""
    payload = b"[[[   "
    payload += b" " * (-len(payload) % 4)
    body = struct.pack("<II", len(payload), 0x4E4F534A) + payload
    data = struct.pack("<III", 0x46546C67, 2, 12 + len(body)) + body

    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "broken.vrm")
        with open(path, "wb") as f:
            f.write(data)
        with pytest.raises(VrmJsonDecodeError):
            VrmParser().parse_vrm(path)


def test_parse_missing_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(VrmIOError):
            VrmParser().parse_vrm(os.path.join(tmpdir, "missing.vrm"))


def test_extract_gltf():
    """Should load the scene document only."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = create_test_vrm(tmpdir, {"KHR_materials_unlit": {}})
        scene = VrmParser().extract_gltf(path)

    assert scene.meshes[0].name == "Body"
    assert "KHR_materials_unlit" in scene.extensions


def test_extract_to_temp():
    """Should copy the file into a new directory owned by the caller."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = create_test_vrm(tmpdir, VRM0_EXTENSIONS)
        copy_dir, copy_path = extract_to_temp(path)
        try:
            assert os.path.dirname(copy_path) == copy_dir
            assert os.path.basename(copy_path) == "model.vrm"
            with open(path, "rb") as a, open(copy_path, "rb") as b:
                assert a.read() == b.read()
        finally:
            shutil.rmtree(copy_dir)


def test_extract_to_temp_missing():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(VrmIOError, match="VRM file not found"):
            extract_to_temp(os.path.join(tmpdir, "missing.vrm"))


def test_extracted_copy_removed_on_error():
    """Should remove the temporary copy even when the body raises."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = create_test_vrm(tmpdir, VRM0_EXTENSIONS)
        seen = []
        with pytest.raises(RuntimeError):
            with extracted_copy(path) as copy_path:
                seen.append(copy_path)
                assert os.path.exists(copy_path)
                raise RuntimeError("conversion failed")

    assert not os.path.exists(os.path.dirname(seen[0]))


def test_parse_reads_container_once(monkeypatch):
    """One parse reads and validates the container a single time."""
    parser = VrmParser(loader=GltfLoader(decoder=always_fail))
    reads = []
    original = parser.parser.parse_file

    def counting_parse_file(path):
        reads.append(path)
        return original(path)

    monkeypatch.setattr(parser.parser, "parse_file", counting_parse_file)

    with tempfile.TemporaryDirectory() as tmpdir:
        path = create_test_vrm(tmpdir, VRM0_EXTENSIONS)
        result = parser.parse_vrm(path)

    assert reads == [path]
    assert result.gltf.degraded is True
    assert result.version == "0.0"


def test_parse_non_object_extensions():
    """A list of extension names is not a VRM extension object."""
    parser = VrmParser(loader=GltfLoader(decoder=always_fail))

    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "model.vrm")
        with open(path, "wb") as f:
            f.write(build_glb({"asset": {"version": "2.0"}, "extensions": ["VRM"]}))
        with pytest.raises(NoVrmExtensionError):
            parser.parse_vrm(path)
