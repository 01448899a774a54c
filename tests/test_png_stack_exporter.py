import io
import os
import zipfile

import numpy as np
import pytest
from PIL import Image

from core import ConfigurationError, InvalidPermutationError, Permutation, VolumeData
from exporters import PngStackExporter, encode_png, slice_entry_name
from exporters import png_stack
from processors import compute_global_range, normalize_to_uint8


def _volume(width, height, depth, values=None) -> VolumeData:
    if values is None:
        values = np.arange(width * height * depth, dtype=np.float32)
    return VolumeData(raw_data=np.asarray(values, dtype=np.float32), dimensions=(width, height, depth))


def _read_entries(path):
    with zipfile.ZipFile(path) as zf:
        names = zf.namelist()
        images = {}
        for name in names:
            with Image.open(io.BytesIO(zf.read(name))) as img:
                assert img.mode == "L"
                images[name] = np.asarray(img)
    return names, images


def test_slice_entry_name():
    assert slice_entry_name(0, 2) == "image.00000.png"
    assert slice_entry_name(7, 10) == "image.00007.png"
    assert slice_entry_name(99999, 100000) == "image.99999.png"
    assert slice_entry_name(7, 100001) == "image.000007.png"


def test_encode_png_grayscale():
    raster = np.array([[0, 128, 255], [10, 20, 30]], dtype=np.uint8)
    with Image.open(io.BytesIO(encode_png(raster))) as img:
        assert img.format == "PNG"
        assert img.mode == "L"
        assert img.size == (3, 2)  # (columns, rows)
        assert np.array_equal(np.asarray(img), raster)


def test_encode_png_rejects_non_2d():
    with pytest.raises(ValueError):
        encode_png(np.zeros((2, 2, 3), dtype=np.uint8))


def test_round_trip_2x2x2(tmp_path):
    out = tmp_path / "stack.zip"
    result = PngStackExporter().export(_volume(2, 2, 2), str(out), permutation=123)

    assert result.slice_count == 2
    assert result.lengths == (2, 2, 2)
    assert result.path == str(out)

    names, images = _read_entries(out)
    assert names == ["image.00000.png", "image.00001.png"]
    assert images["image.00000.png"].tolist() == [[0, 36], [72, 109]]
    assert images["image.00001.png"].tolist() == [[145, 182], [218, 255]]


@pytest.mark.parametrize("perm", list(Permutation))
def test_every_permutation_writes_expected_rasters(tmp_path, perm):
    data = _volume(2, 3, 4)
    out = tmp_path / f"stack_{int(perm)}.zip"
    result = PngStackExporter().export(data, str(out), permutation=perm)

    l1, l2, l3 = perm.lengths(data.dimensions)
    global_range = compute_global_range(data.raw_data)
    names, images = _read_entries(out)
    assert len(names) == l3 == result.slice_count

    for d, name in enumerate(names):
        expected = np.empty((l2, l1), dtype=np.float32)
        for y in range(l2):
            for x in range(l1):
                expected[y, x] = data.raw_data[perm.flat_index(x, y, d, data.dimensions)]
        assert images[name].shape == (l2, l1)
        assert np.array_equal(images[name], normalize_to_uint8(expected, global_range))


def test_constant_volume_writes_uniform_zero(tmp_path):
    out = tmp_path / "flat.zip"
    data = _volume(3, 2, 2, values=np.full(12, 42.0))
    PngStackExporter().export(data, str(out))

    _, images = _read_entries(out)
    assert len(images) == 2
    for img in images.values():
        assert img.shape == (2, 3)
        assert np.all(img == 0)


def test_global_range_is_shared_across_slices(tmp_path):
    out = tmp_path / "range.zip"
    # Slice 0 spans 0..3, slice 1 spans 100..103; no per-slice rescaling.
    values = np.concatenate([np.arange(4), np.arange(100, 104)]).astype(np.float32)
    PngStackExporter().export(_volume(2, 2, 2, values), str(out))

    _, images = _read_entries(out)
    assert images["image.00000.png"].max() < 10
    assert images["image.00001.png"].max() == 255


def test_parallel_workers_keep_ascending_order(tmp_path):
    data = _volume(4, 3, 17)
    seq_out = tmp_path / "seq.zip"
    par_out = tmp_path / "par.zip"
    PngStackExporter(max_workers=1).export(data, str(seq_out), permutation=213)
    PngStackExporter(max_workers=4).export(data, str(par_out), permutation=213)

    seq_names, seq_images = _read_entries(seq_out)
    par_names, par_images = _read_entries(par_out)
    assert par_names == seq_names == sorted(seq_names)
    for name in seq_names:
        assert np.array_equal(seq_images[name], par_images[name])


def test_progress_callback_reaches_100(tmp_path):
    calls = []
    PngStackExporter().export(_volume(2, 2, 3), str(tmp_path / "p.zip"), callback=lambda p, m: calls.append(p))
    assert calls == sorted(calls)
    assert calls[-1] == 100


def test_creates_missing_output_directory(tmp_path):
    out = tmp_path / "nested" / "dir" / "stack.zip"
    PngStackExporter().export(_volume(2, 2, 2), str(out))
    assert out.exists()


def test_failed_write_leaves_no_partial_archive(tmp_path, monkeypatch):
    out = tmp_path / "stack.zip"
    out.write_bytes(b"previous archive")

    real_encode = png_stack.encode_png
    calls = {"n": 0}

    def flaky_encode(raster):
        calls["n"] += 1
        if calls["n"] == 2:
            raise OSError("disk full")
        return real_encode(raster)

    monkeypatch.setattr(png_stack, "encode_png", flaky_encode)

    with pytest.raises(OSError, match="disk full"):
        PngStackExporter().export(_volume(2, 2, 3), str(out))

    assert out.read_bytes() == b"previous archive"
    assert sorted(os.listdir(tmp_path)) == ["stack.zip"]


def test_invalid_permutation_writes_nothing(tmp_path):
    out = tmp_path / "stack.zip"
    with pytest.raises(InvalidPermutationError):
        PngStackExporter().export(_volume(2, 2, 2), str(out), permutation=122)
    assert not out.exists()


def test_invalid_exporter_settings():
    with pytest.raises(ConfigurationError):
        PngStackExporter(max_workers=0)
    with pytest.raises(ConfigurationError):
        PngStackExporter(compression="lzma")


def test_stored_compression(tmp_path):
    out = tmp_path / "stored.zip"
    PngStackExporter(compression="stored").export(_volume(2, 2, 2), str(out))
    with zipfile.ZipFile(out) as zf:
        assert all(info.compress_type == zipfile.ZIP_STORED for info in zf.infolist())
