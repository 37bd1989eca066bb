from lifecourse.sim.noise import SmoothNoise


def _samples() -> list[float]:
    return [-40.3 + index * 0.731 for index in range(200)]


def test_noise_is_bounded() -> None:
    for seed in (0, 1, 42, 2**31 - 1):
        noise = SmoothNoise(seed)
        for x in _samples():
            assert 0.0 <= noise.noise_1d(x) <= 1.0


def test_same_seed_gives_same_curve() -> None:
    first = SmoothNoise(1234)
    second = SmoothNoise(1234)

    assert [first.noise_1d(x) for x in _samples()] == [second.noise_1d(x) for x in _samples()]


def test_different_seeds_give_different_curves() -> None:
    xs = [0.37 + index * 0.61 for index in range(20)]

    assert [SmoothNoise(1).noise_1d(x) for x in xs] != [SmoothNoise(2).noise_1d(x) for x in xs]


def test_noise_is_continuous() -> None:
    noise = SmoothNoise(77)
    for x in _samples():
        assert abs(noise.noise_1d(x + 0.001) - noise.noise_1d(x)) < 0.01


def test_noise_is_neutral_on_lattice_points() -> None:
    noise = SmoothNoise(5)

    assert noise.noise_1d(0.0) == 0.5
    assert noise.noise_1d(3.0) == 0.5


def test_fluctuation_is_bounded_and_deterministic() -> None:
    for volatility in (0.0, 0.3, 0.5, 0.9, 1.0):
        first = [SmoothNoise(99).fluctuation(step, volatility) for step in range(60)]
        second = [SmoothNoise(99).fluctuation(step, volatility) for step in range(60)]
        assert first == second
        assert all(0.0 <= value <= 1.0 for value in first)


def test_fluctuation_starts_neutral() -> None:
    assert SmoothNoise(3).fluctuation(0, 0.2) == 0.5
    assert SmoothNoise(3).fluctuation(0, 0.9) == 0.5
