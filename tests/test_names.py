import random
from unittest import mock

from gont.names import NAMES, get_random_name


def test_random_name_is_known():
    for _ in range(50):
        assert get_random_name() in NAMES


def test_random_name_picks_from_whole_list():
    with mock.patch("random.choice", side_effect=lambda seq: seq[-1]):
        assert get_random_name() == "zorn"
    with mock.patch("random.choice", side_effect=lambda seq: seq[0]):
        assert get_random_name() == "akkerhuis"


def test_random_names_are_lowercase_without_spaces():
    drawn = [get_random_name() for _ in range(200)]
    assert all(name == name.lower() and " " not in name for name in drawn)


def test_random_names_vary():
    random.seed(1)
    drawn = {get_random_name() for _ in range(300)}
    assert len(drawn) > 10