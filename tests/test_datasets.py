import pytest
import torch

from charlm import WindowDataset, make_windows


def test_windows_follow_the_step():
    idx = torch.arange(10)
    x, y = make_windows(idx, seq_length=3, step=2)
    # starts 0, 2, 4, 6; start 8 has no target left
    assert x.tolist() == [[0, 1, 2], [2, 3, 4], [4, 5, 6], [6, 7, 8]]
    assert y.tolist() == [3, 5, 7, 9]


def test_window_count():
    for n, t, s in [(10, 3, 1), (10, 3, 3), (11, 4, 2), (5, 4, 1)]:
        x, _ = make_windows(torch.arange(n), t, s)
        assert x.shape == ((n - t - 1) // s + 1, t)


def test_too_short_gives_no_windows():
    x, y = make_windows(torch.arange(3), seq_length=3, step=1)
    assert x.shape == (0, 3) and y.shape == (0,)


@pytest.mark.parametrize("seq_length,step", [(0, 1), (3, 0)])
def test_invalid_arguments(seq_length, step):
    with pytest.raises(ValueError):
        make_windows(torch.arange(10), seq_length, step)


def test_dataset_items():
    x, y = make_windows(torch.arange(6), 2, 1)
    ds = WindowDataset(x, y)
    assert len(ds) == 4
    xi, yi = ds[1]
    assert xi.tolist() == [1, 2] and int(yi) == 3
