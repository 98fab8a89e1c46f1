"""End-to-end resolution of session parameters."""

import logging
from pathlib import Path

import pytest

from scanomatic.config.schema import ScanConfig
from scanomatic.pipelines import resolve_scan_parameters
from scanomatic.pipelines.types import ImageHeader, RunInput
from scanomatic.utils.errors import IssueKind, SliceCountMismatchError

from .utils import fake_reader, headers_for, make_epi, write_sidecar


def test_two_matching_runs_default_formula(caplog):
    """Two runs, 30 slices, TR 2.0, no sidecar → interleaved order, no warning."""
    names = ["epi_r01.nii", "epi_r02.nii"]
    reader = fake_reader(headers_for(names, nslices=[30, 30], trs=[2.0, 2.0]))

    with caplog.at_level(logging.WARNING):
        result = resolve_scan_parameters(names, ScanConfig(), reader=reader)

    assert result.ok
    params = result.parameters
    assert params.session_count == 2
    assert params.slice_count == 30
    assert params.trs == (2.0, 2.0)
    assert params.volume_counts == (10, 10)
    assert params.slice_order == tuple(range(1, 30, 2)) + tuple(range(2, 31, 2))
    assert params.reference_slice_time is None
    assert result.warnings == ()
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


def test_slice_count_mismatch_returns_error():
    """Differing slice counts give an error and no parameters."""
    names = ["epi_r01.nii", "epi_r02.nii"]
    reader = fake_reader(headers_for(names, nslices=[30, 28], trs=[2.0, 2.0]))

    result = resolve_scan_parameters(names, ScanConfig(), reader=reader)

    assert not result.ok
    assert result.parameters is None
    assert result.error.kind is IssueKind.SLICE_COUNT_MISMATCH
    with pytest.raises(SliceCountMismatchError):
        result.unwrap()


def test_override_applies_to_every_run():
    """Verify the manual TR replaces each header TR."""
    names = ["epi_r01.nii", "epi_r02.nii"]
    reader = fake_reader(headers_for(names, nslices=[20, 20], trs=[2.0, 1.0]))

    result = resolve_scan_parameters(names, ScanConfig(tr_override=2.5), reader=reader)

    assert result.unwrap().trs == (2.5, 2.5)
    assert result.warnings == ()


def test_missing_tr_in_any_run_fails():
    """Verify one run without TR fails the whole session."""
    names = ["epi_r01.nii", "epi_r02.nii"]
    reader = fake_reader(headers_for(names, nslices=[20, 20], trs=[2.0, None]))

    result = resolve_scan_parameters(names, ScanConfig(), reader=reader)

    assert result.error.kind is IssueKind.MISSING_TR
    assert result.error.run == 2


def test_tr_mismatch_keeps_per_run_trs():
    """Verify heterogeneous TRs are kept and flagged."""
    names = ["epi_r01.nii", "epi_r02.nii"]
    reader = fake_reader(headers_for(names, nslices=[20, 20], trs=[2.0, 2.5]))

    result = resolve_scan_parameters(names, ScanConfig(), reader=reader)

    assert result.unwrap().trs == (2.0, 2.5)
    assert [w.kind for w in result.warnings] == [IssueKind.TR_MISMATCH]


def test_same_tr_in_different_units_is_no_mismatch(tmp_path: Path):
    """2.2 s and 2200 ms headers describe one TR and raise no warning."""
    first = make_epi(tmp_path / "epi_r01.nii", shape=(4, 4, 3, 2), tr=2.2)
    second = make_epi(tmp_path / "epi_r02.nii", shape=(4, 4, 3, 2), tr=2200.0, t_unit="msec")

    result = resolve_scan_parameters([first, second])

    assert result.unwrap().trs == (2.2, 2.2)
    assert result.warnings == ()


def test_runs_are_read_in_input_order():
    """Verify runs are processed sequentially in the order given."""
    names = ["epi_r03.nii", "epi_r01.nii", "epi_r02.nii"]
    calls: list[Path] = []
    reader = fake_reader(headers_for(names, nslices=[20] * 3, trs=[2.0] * 3), calls)

    resolve_scan_parameters(names, ScanConfig(), reader=reader)

    assert [p.name for p in calls] == names


def test_first_run_sidecar_drives_multiband(tmp_path: Path):
    """Duplicate sidecar timings yield a reference time and empty order."""
    runs = [tmp_path / "epi_r01.nii.gz", tmp_path / "epi_r02.nii.gz"]
    for run in runs:
        make_epi(run, shape=(4, 4, 4, 3), tr=1.0)
    write_sidecar(runs[0], {"SliceTiming": [0.0, 0.5, 0.0, 0.5]})

    result = resolve_scan_parameters(runs, ScanConfig(reference_slice_index=2))

    params = result.unwrap()
    assert params.slice_order == ()
    assert params.reference_slice_time == pytest.approx(0.5)
    assert params.is_multiband
    assert list(tmp_path.glob(".tmp_scan_*")) == []


def test_sidecar_orientation_end_to_end(tmp_path: Path):
    """Verify a column-stored sidecar gives a rank order."""
    run = make_epi(tmp_path / "sub-01_task-rest_bold.nii", shape=(4, 4, 4, 3), tr=2.0)
    write_sidecar(run, {"SliceTiming": [[0.75], [0.25], [0.5], [0.0]]})

    params = resolve_scan_parameters([run]).unwrap()

    assert params.slice_order == (4, 2, 3, 1)


def test_malformed_sidecar_is_an_error(tmp_path: Path):
    """Verify a broken sidecar is reported rather than ignored."""
    run = make_epi(tmp_path / "epi.nii", shape=(4, 4, 4, 3), tr=2.0)
    write_sidecar(run, "{not json")

    result = resolve_scan_parameters([run], ScanConfig(acquisition_formula="philips"))

    assert result.error.kind is IssueKind.MALFORMED_SIDECAR
    assert result.parameters is None


def test_run_inputs_are_accepted_directly():
    """Verify prebuilt RunInput objects pass through untouched."""
    reader = fake_reader(headers_for(["a.nii"], nslices=[9], trs=[2.0]))
    run = RunInput(path=Path("a.nii"))

    result = resolve_scan_parameters([run], ScanConfig(acquisition_formula="philips"), reader=reader)

    assert result.unwrap().slice_order == (1, 4, 7, 2, 5, 8, 3, 6, 9)


def test_no_runs():
    """Verify an empty session is reported as an error."""
    result = resolve_scan_parameters([])
    assert result.error.kind is IssueKind.NO_RUNS


@pytest.mark.parametrize(
    "header",
    [
        ImageHeader(dims=(64, 64, 0), tr=2.0, n_vols=5),
        ImageHeader(dims=(64, 64, 30), tr=2.0, n_vols=0),
    ],
    ids=["zero-slices", "zero-volumes"],
)
def test_empty_image_is_an_unreadable_header(header):
    """A header describing an empty image comes back as an error, not a crash."""
    reader = fake_reader({"a.nii": header})

    result = resolve_scan_parameters(["a.nii"], ScanConfig(), reader=reader)

    assert result.parameters is None
    assert result.error.kind is IssueKind.UNREADABLE_HEADER
    assert result.error.run == 1
