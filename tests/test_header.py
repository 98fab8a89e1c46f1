"""Per-run header extraction, TR priority and scratch-directory handling."""

from pathlib import Path

import pytest

from scanomatic.config.schema import ScanConfig
from scanomatic.pipelines.header import extract_run_metadata, read_nifti_header
from scanomatic.pipelines.types import ImageHeader, RunInput
from scanomatic.utils.errors import MissingTRError, UnreadableHeaderError

from .utils import fake_reader, make_epi


def _scratch_dirs(root: Path) -> list[Path]:
    return list(root.glob(".tmp_scan_*"))


def test_read_nifti_header_4d(tmp_path: Path):
    """Dimensions, volume count and TR come from the NIfTI header."""
    epi = make_epi(tmp_path / "epi.nii", shape=(6, 5, 3, 7), tr=2.0)
    hdr = read_nifti_header(epi)
    assert hdr.dims == (6, 5, 3)
    assert hdr.n_vols == 7
    assert hdr.tr == pytest.approx(2.0)


def test_read_nifti_header_converts_msec(tmp_path: Path):
    """Verify millisecond TRs are converted to seconds."""
    epi = make_epi(tmp_path / "epi.nii", tr=2500.0, t_unit="msec")
    assert read_nifti_header(epi).tr == pytest.approx(2.5)


@pytest.mark.parametrize(
    "stored, t_unit",
    [(2.2, "sec"), (2200.0, "msec"), (2_200_000.0, "usec")],
)
def test_read_nifti_header_tr_is_unit_independent(tmp_path: Path, stored, t_unit):
    """The same TR in any time unit reads back as the same float."""
    epi = make_epi(tmp_path / "epi.nii", tr=stored, t_unit=t_unit)
    assert read_nifti_header(epi).tr == 2.2


def test_read_nifti_header_3d_has_no_tr(tmp_path: Path):
    """Verify a single volume reports one volume and no TR."""
    epi = make_epi(tmp_path / "epi.nii", shape=(4, 4, 3))
    hdr = read_nifti_header(epi)
    assert hdr.n_vols == 1
    assert hdr.tr is None


def test_slice_count_is_smallest_dimension(tmp_path: Path):
    """Verify slices are taken to be the thinnest spatial axis."""
    epi = make_epi(tmp_path / "epi.nii", shape=(3, 8, 8, 4), tr=1.5)
    meta = extract_run_metadata(RunInput.from_path(epi), ScanConfig())
    assert meta.slice_count == 3
    assert meta.volume_count == 4
    assert meta.tr == pytest.approx(1.5)


def test_override_beats_header_tr(tmp_path: Path):
    """Verify a manual TR replaces the header value."""
    epi = make_epi(tmp_path / "epi.nii", tr=2.0)
    meta = extract_run_metadata(RunInput.from_path(epi), ScanConfig(tr_override=2.5))
    assert meta.tr == pytest.approx(2.5)


def test_override_used_when_header_has_no_tr():
    """Verify the override also fills in a missing header TR."""
    reader = fake_reader({"epi.nii": ImageHeader(dims=(64, 64, 30), tr=None, n_vols=5)})
    run = RunInput(path=Path("epi.nii"))
    meta = extract_run_metadata(run, ScanConfig(tr_override=3.0), reader=reader)
    assert meta.tr == 3.0


def test_missing_tr_is_fatal(tmp_path: Path):
    """Verify a run without header TR and no override fails."""
    epi = make_epi(tmp_path / "epi.nii", tr=None)
    with pytest.raises(MissingTRError) as err:
        extract_run_metadata(RunInput.from_path(epi), ScanConfig(), index=2)
    assert err.value.run == 2


def test_compressed_run_is_read_and_scratch_removed(tmp_path: Path):
    """A .nii.gz run is expanded into scratch space that is then deleted."""
    epi = make_epi(tmp_path / "epi.nii.gz", shape=(4, 4, 3, 6), tr=2.0)
    seen: list[Path] = []

    def _reader(path: Path) -> ImageHeader:
        seen.append(path)
        assert path.parent.name.startswith(".tmp_scan_")
        assert path.name == "epi.nii"
        return read_nifti_header(path)

    meta = extract_run_metadata(RunInput.from_path(epi), ScanConfig(), reader=_reader)
    assert meta.volume_count == 6
    assert len(seen) == 1
    assert not seen[0].parent.exists()
    assert _scratch_dirs(tmp_path) == []


def test_scratch_removed_when_reader_fails(tmp_path: Path):
    """Verify scratch space is cleaned up on the failure path too."""
    epi = make_epi(tmp_path / "epi.nii.gz")

    def _reader(path: Path) -> ImageHeader:
        raise OSError("truncated header")

    with pytest.raises(UnreadableHeaderError, match="truncated header"):
        extract_run_metadata(RunInput.from_path(epi), ScanConfig(), reader=_reader)
    assert _scratch_dirs(tmp_path) == []


def test_scratch_removed_when_tr_missing(tmp_path: Path):
    """Verify a fatal TR error still leaves no scratch directory behind."""
    epi = make_epi(tmp_path / "epi.nii.gz", tr=None)
    with pytest.raises(MissingTRError):
        extract_run_metadata(RunInput.from_path(epi), ScanConfig())
    assert _scratch_dirs(tmp_path) == []


def test_garbage_file_is_unreadable(tmp_path: Path):
    """Verify a non-NIfTI file maps to UnreadableHeaderError."""
    bad = tmp_path / "bad.nii"
    bad.write_bytes(b"not a nifti header")
    with pytest.raises(UnreadableHeaderError):
        extract_run_metadata(RunInput.from_path(bad), ScanConfig())


def test_corrupt_gzip_is_unreadable(tmp_path: Path):
    """Verify a .gz that is not gzip data maps to UnreadableHeaderError."""
    bad = tmp_path / "bad.nii.gz"
    bad.write_bytes(b"plain bytes")
    with pytest.raises(UnreadableHeaderError):
        extract_run_metadata(RunInput.from_path(bad), ScanConfig())
    assert _scratch_dirs(tmp_path) == []
