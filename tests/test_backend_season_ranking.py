import math

from backend.models import Episode, Season
from backend.season_ranking import parse_rating, rank, season_score, score_season


def test_parse_rating_handles_sentinels_and_garbage():
    assert parse_rating("8.5") == 8.5
    assert parse_rating(" 9 ") == 9.0
    assert parse_rating("N/A") is None
    assert parse_rating("n/a") is None
    assert parse_rating("") is None
    assert parse_rating("unrated") is None
    assert parse_rating(None) is None
    assert parse_rating("nan") is None
    assert parse_rating("inf") is None
    assert parse_rating(True) is None


def test_season_score_excludes_non_numeric_but_keeps_episodes(make_season):
    season = make_season(1, ["8.5", "9.0", "N/A"])

    ranked = score_season(season)

    assert ranked.score == (8.5 + 9.0) / 2
    assert len(ranked.episodes) == 3
    assert ranked.episodes[2].rating == "N/A"
    assert ranked.episodes == season.episodes


def test_season_score_all_unrated_is_zero(make_season):
    season = make_season(3, ["N/A", "N/A"])
    score = season_score(season.episodes)
    assert score == 0.0
    assert not math.isnan(score)


def test_season_score_empty_season_is_zero():
    assert season_score([]) == 0.0


def test_rank_orders_by_score_descending(make_season):
    seasons = [make_season(1, ["7.2"]), make_season(2, ["8.9"])]

    ranked = rank(seasons)

    assert [s.season_number for s in ranked] == [2, 1]
    assert ranked[0].score == 8.9


def test_rank_ties_resolved_by_season_number_ascending(make_season):
    seasons = [
        make_season(1, ["8.0"]),
        make_season(2, ["9.0"]),
        make_season(3, ["8.0"]),
        make_season(4, ["N/A"]),
        make_season(5, []),
    ]

    ranked = rank(seasons)

    assert [s.season_number for s in ranked] == [2, 1, 3, 4, 5]


def test_rank_is_permutation_of_input(make_season):
    seasons = [make_season(n, [str(5 + (n * 7) % 5)]) for n in range(1, 9)]

    ranked = rank(seasons)

    assert sorted(s.season_number for s in ranked) == list(range(1, 9))
    scores = [s.score for s in ranked]
    assert scores == sorted(scores, reverse=True)


def test_rank_does_not_touch_episode_fields():
    episode = Episode(episode_number=4, title="Ozymandias", rating="10.0")
    ranked = rank([Season(season_number=5, episodes=(episode,))])
    assert ranked[0].episodes[0] is episode
