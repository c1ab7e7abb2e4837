"""
Curated fallback movies, used when aggregation yields nothing or TMDB is not
configured.
"""

from typing import Dict, List, Tuple

import structlog

from ..models.movie_models import MovieCandidate

logger = structlog.get_logger(__name__)

DEFAULT_GENRE = "action"
MAX_FALLBACK_MOVIES = 20

# (title, rating, overview, release year)
_CURATED: Dict[str, List[Tuple[str, float, str, int]]] = {
    "action": [
        ("The Dark Knight", 9.0, "Batman faces the Joker in this epic thriller.", 2008),
        ("Mad Max: Fury Road", 8.1, "A post-apocalyptic action adventure.", 2015),
        ("John Wick", 7.4, "An ex-hitman seeks vengeance.", 2014),
        ("Inception", 8.8, "A thief steals secrets through dreams.", 2010),
        ("Mission: Impossible", 7.1, "Ethan Hunt takes on impossible missions.", 1996),
        ("Die Hard", 8.2, "A cop battles terrorists in a skyscraper.", 1988),
        ("The Matrix", 8.7, "A hacker discovers reality is simulated.", 1999),
        ("Gladiator", 8.5, "A general becomes a gladiator seeking revenge.", 2000),
        ("Casino Royale", 8.0, "James Bond's first mission as 007.", 2006),
        ("The Bourne Identity", 7.9, "An amnesiac spy uncovers his past.", 2002),
        ("Kill Bill Vol. 1", 8.1, "A bride seeks revenge on her assassins.", 2003),
        ("The Raid", 7.6, "SWAT team trapped in a crime lord's building.", 2011),
        ("Terminator 2", 8.5, "A cyborg protects a boy from the future.", 1991),
        ("Speed", 7.2, "A bus rigged to explode if it slows down.", 1994),
        ("Top Gun: Maverick", 8.3, "An elite pilot trains a new generation.", 2022),
        ("Extraction", 6.7, "A mercenary rescues a kidnapped boy.", 2020),
        ("Edge of Tomorrow", 7.9, "A soldier relives his last day in a time loop.", 2014),
        ("RRR", 7.9, "Two revolutionaries fight British rule in India.", 2022),
        ("Fury", 7.6, "A tank crew battles through Nazi Germany.", 2014),
        ("The Raid 2", 7.9, "An undercover cop infiltrates a crime syndicate.", 2014),
    ],
    "comedy": [
        ("The Grand Budapest Hotel", 8.1, "A quirky comedy about a hotel concierge.", 2014),
        ("Superbad", 7.6, "Two high school friends have one wild night.", 2007),
        ("The Hangover", 7.7, "Friends wake up with no memory of the night.", 2009),
        ("Bridesmaids", 6.8, "Wedding chaos ensues.", 2011),
        ("Deadpool", 8.0, "A wisecracking mercenary gets superpowers.", 2016),
        ("Groundhog Day", 8.0, "A weatherman relives the same day repeatedly.", 1993),
        ("Dumb and Dumber", 7.3, "Two dim-witted friends go on a cross-country trip.", 1994),
        ("Step Brothers", 6.9, "Two grown men become stepbrothers.", 2008),
        ("Anchorman", 7.2, "A 1970s news anchor faces a changing world.", 2004),
        ("21 Jump Street", 7.2, "Two cops go undercover in high school.", 2012),
        ("Shaun of the Dead", 7.9, "A man fights zombies to save his ex.", 2004),
        ("Hot Fuzz", 7.8, "A top cop is transferred to a sleepy village.", 2007),
        ("Tropic Thunder", 7.0, "Actors filming a war movie get caught in real combat.", 2008),
        ("Borat", 7.3, "A Kazakh journalist explores America.", 2006),
        ("Airplane!", 7.7, "A spoof of disaster movies.", 1980),
        ("The Big Lebowski", 8.1, "A slacker gets caught in a kidnapping plot.", 1998),
        ("Knives Out", 7.9, "A detective investigates a mysterious death.", 2019),
        ("Jojo Rabbit", 7.9, "A boy's imaginary friend is Hitler.", 2019),
        ("Palm Springs", 7.4, "Two wedding guests stuck in a time loop.", 2020),
        ("Game Night", 6.9, "A game night turns into a real mystery.", 2018),
    ],
    "horror": [
        ("Get Out", 7.7, "A man uncovers dark secrets at his girlfriend's family estate.", 2017),
        ("A Quiet Place", 7.5, "Silence is survival in this thriller.", 2018),
        ("The Conjuring", 7.5, "Paranormal investigators face demonic forces.", 2013),
        ("Hereditary", 7.3, "A family haunted by dark secrets.", 2018),
        ("It", 7.3, "Kids face their fears against a killer clown.", 2017),
        ("The Shining", 8.4, "A family is terrorized by supernatural forces.", 1980),
        ("The Exorcist", 8.0, "A young girl possessed by a demon.", 1973),
        ("Midsommar", 7.1, "A couple attends a Swedish festival with dark secrets.", 2019),
        ("The Witch", 6.9, "A family in 1630s New England faces evil.", 2015),
        ("Sinister", 6.8, "A writer finds disturbing home movies.", 2012),
        ("The Ring", 7.1, "A cursed videotape kills viewers in seven days.", 2002),
        ("28 Days Later", 7.6, "A man wakes to find the world infected.", 2002),
        ("The Descent", 7.2, "Spelunkers encounter creatures underground.", 2005),
        ("Insidious", 6.8, "A family haunted by a dark entity.", 2010),
        ("Us", 6.8, "A family confronted by their doppelgangers.", 2019),
        ("Train to Busan", 7.6, "Passengers fight zombies on a speeding train.", 2016),
        ("The Cabin in the Woods", 7.0, "College students face more than expected.", 2011),
        ("Evil Dead", 6.5, "Friends unleash demonic forces.", 2013),
        ("Don't Breathe", 7.1, "Burglars target a blind man's home.", 2016),
        ("Scream", 7.3, "A masked killer terrorizes a small town.", 1996),
    ],
    "drama": [
        ("The Shawshank Redemption", 9.3, "Hope finds a way even in prison.", 1994),
        ("Forrest Gump", 8.8, "Life is like a box of chocolates.", 1994),
        ("The Godfather", 9.2, "A mafia family's saga.", 1972),
        ("Schindler's List", 8.9, "One man's mission to save lives.", 1993),
        ("12 Years a Slave", 8.1, "A harrowing tale of survival.", 2013),
        ("Parasite", 8.5, "A poor family schemes to work for a wealthy household.", 2019),
        ("Whiplash", 8.5, "A drummer pushed to his limits.", 2014),
        ("The Green Mile", 8.6, "A death row guard befriends a gentle giant.", 1999),
        ("Good Will Hunting", 8.3, "A janitor is a genius mathematician.", 1997),
        ("The Pianist", 8.5, "A Jewish pianist survives WWII.", 2002),
        ("Moonlight", 7.4, "A young man's journey to self-discovery.", 2016),
        ("Manchester by the Sea", 7.8, "A janitor confronts his past.", 2016),
        ("A Beautiful Mind", 8.2, "A mathematician battles schizophrenia.", 2001),
        ("The Pursuit of Happyness", 8.0, "A father fights homelessness for his son.", 2006),
        ("Room", 8.1, "A woman and her son escape captivity.", 2015),
        ("The Revenant", 8.0, "A frontiersman survives and seeks revenge.", 2015),
        ("Spotlight", 8.1, "Journalists uncover abuse in the Catholic Church.", 2015),
        ("American Beauty", 8.3, "A man's midlife crisis spirals.", 1999),
        ("The Social Network", 7.8, "The founding of Facebook.", 2010),
        ("Her", 8.0, "A man falls for an AI.", 2013),
    ],
}


def _build_table() -> Dict[str, List[MovieCandidate]]:
    table = {}
    next_id = 1
    for genre, rows in _CURATED.items():
        movies = []
        for title, rating, overview, year in rows:
            movies.append(MovieCandidate(
                external_id=next_id,
                title=title,
                overview=overview,
                rating=rating,
                release_year=str(year),
            ))
            next_id += 1
        table[genre] = movies
    return table


FALLBACK_MOVIES_BY_GENRE: Dict[str, List[MovieCandidate]] = _build_table()


def available_genres() -> List[str]:
    return list(FALLBACK_MOVIES_BY_GENRE)


def fallback_movies(genre: str = DEFAULT_GENRE) -> List[MovieCandidate]:
    """
    Curated movies for a genre.

    Unknown or empty genre keys use the default bucket. Returns copies so
    callers cannot mutate the table.
    """
    key = (genre or "").strip().lower()
    if key not in FALLBACK_MOVIES_BY_GENRE:
        logger.info("No curated list for genre, using default", genre=genre, default=DEFAULT_GENRE)
        key = DEFAULT_GENRE
    return [
        MovieCandidate(**movie.to_dict())
        for movie in FALLBACK_MOVIES_BY_GENRE[key][:MAX_FALLBACK_MOVIES]
    ]
