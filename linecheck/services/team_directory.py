"""
Team Directory

Canonical NFL and NCAAF team names with the aliases picksheets and
sportsbooks use for them (nicknames, cities, abbreviations).

The catalog is built once and shared read-only by the entity resolver and
the comparison engine. Iteration order is catalog order, and the first team
whose name or alias matches wins.
"""
import re
import logging
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from linecheck.models.league import League

logger = logging.getLogger(__name__)


# =============================================================================
# NFL TEAMS
# (canonical name, aliases)
# =============================================================================
NFL_TEAMS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    # AFC East
    ("Buffalo Bills", ("Bills", "Buffalo", "BUF")),
    ("Miami Dolphins", ("Dolphins", "Miami", "MIA")),
    ("New England Patriots", ("Patriots", "New England", "Pats", "NE")),
    ("New York Jets", ("Jets", "NY Jets", "NYJ")),

    # AFC North
    ("Baltimore Ravens", ("Ravens", "Baltimore", "BAL")),
    ("Cincinnati Bengals", ("Bengals", "Cincinnati", "Cincy", "CIN")),
    ("Cleveland Browns", ("Browns", "Cleveland", "CLE")),
    ("Pittsburgh Steelers", ("Steelers", "Pittsburgh", "Pitt", "PIT")),

    # AFC South
    ("Houston Texans", ("Texans", "Houston", "HOU")),
    ("Indianapolis Colts", ("Colts", "Indianapolis", "Indy", "IND")),
    ("Jacksonville Jaguars", ("Jaguars", "Jacksonville", "Jags", "JAX", "JAC")),
    ("Tennessee Titans", ("Titans", "Tennessee", "TEN")),

    # AFC West
    ("Denver Broncos", ("Broncos", "Denver", "DEN")),
    ("Kansas City Chiefs", ("Chiefs", "Kansas City", "KC", "KC Chiefs")),
    ("Las Vegas Raiders", ("Raiders", "Las Vegas", "LV", "LVR", "Oakland Raiders")),
    ("Los Angeles Chargers", ("Chargers", "LA Chargers", "L.A. Chargers", "LAC", "San Diego Chargers")),

    # NFC East
    ("Dallas Cowboys", ("Cowboys", "Dallas", "DAL")),
    ("New York Giants", ("Giants", "NY Giants", "NYG")),
    ("Philadelphia Eagles", ("Eagles", "Philadelphia", "Philly", "PHI")),
    ("Washington Commanders", ("Commanders", "Washington", "WAS", "Washington Football Team", "Redskins")),

    # NFC North
    ("Chicago Bears", ("Bears", "Chicago", "CHI")),
    ("Detroit Lions", ("Lions", "Detroit", "DET")),
    ("Green Bay Packers", ("Packers", "Green Bay", "GB", "GBP")),
    ("Minnesota Vikings", ("Vikings", "Minnesota", "MIN")),

    # NFC South
    ("Atlanta Falcons", ("Falcons", "Atlanta", "ATL")),
    ("Carolina Panthers", ("Panthers", "Carolina", "CAR")),
    ("New Orleans Saints", ("Saints", "New Orleans", "NO", "NOS")),
    ("Tampa Bay Buccaneers", ("Buccaneers", "Tampa Bay", "Tampa", "Bucs", "TB", "TBB")),

    # NFC West
    ("Arizona Cardinals", ("Cardinals", "Arizona", "ARI", "AZ")),
    ("Los Angeles Rams", ("Rams", "LA Rams", "L.A. Rams", "LAR", "St. Louis Rams")),
    ("San Francisco 49ers", ("49ers", "San Francisco", "SF", "SFO", "Niners")),
    ("Seattle Seahawks", ("Seahawks", "Seattle", "SEA")),
)

# =============================================================================
# NCAAF TEAMS
# =============================================================================
NCAAF_TEAMS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    # SEC
    ("Alabama Crimson Tide", ("Alabama", "Bama", "Crimson Tide", "ALA")),
    ("Georgia Bulldogs", ("Georgia", "UGA", "Bulldogs", "GA")),
    ("Florida Gators", ("Florida", "UF", "Gators", "FLA")),
    ("Tennessee Volunteers", ("Tennessee", "Vols", "UT", "TENN")),
    ("LSU Tigers", ("LSU", "Louisiana State", "Louisiana St.", "Louisiana State University")),
    ("Auburn Tigers", ("Auburn", "AU", "War Eagle", "AUB")),
    ("Texas A&M Aggies", ("Texas A&M", "A&M", "TAMU", "Aggies")),
    ("Ole Miss Rebels", ("Ole Miss", "Mississippi", "Miss", "MISS")),
    ("Mississippi State Bulldogs", ("Mississippi State", "Mississippi St.", "Miss State", "MSU", "MSST")),
    ("Arkansas Razorbacks", ("Arkansas", "Hogs", "ARK")),
    ("Kentucky Wildcats", ("Kentucky", "UK", "Wildcats", "KY")),
    ("Missouri Tigers", ("Missouri", "Mizzou", "MO", "MIZ")),
    ("South Carolina Gamecocks", ("South Carolina", "USC", "Gamecocks", "SCAR")),
    ("Vanderbilt Commodores", ("Vanderbilt", "Vandy", "Commodores", "VAN")),

    # Big Ten
    ("Ohio State Buckeyes", ("Ohio State", "Ohio St.", "OSU", "Buckeyes", "OHST")),
    ("Michigan Wolverines", ("Michigan", "U of M", "UM", "Wolverines", "MICH")),
    ("Michigan State Spartans", ("Michigan State", "Michigan St.", "MSU", "Spartans", "MIST")),
    ("Penn State Nittany Lions", ("Penn State", "Penn St.", "PSU", "Nittany Lions", "PENN")),
    ("Wisconsin Badgers", ("Wisconsin", "Badgers", "WIS", "WISC")),
    ("Iowa Hawkeyes", ("Iowa", "Hawkeyes", "IOWA")),
    ("Iowa State Cyclones", ("Iowa State", "Iowa St.", "ISU", "Cyclones", "IAST")),
    ("Nebraska Cornhuskers", ("Nebraska", "Huskers", "NEB", "NEBR")),
    ("Minnesota Golden Gophers", ("Minnesota", "Gophers", "MINN", "MIN")),
    ("Indiana Hoosiers", ("Indiana", "IU", "Hoosiers", "IND")),
    ("Illinois Fighting Illini", ("Illinois", "Illini", "ILL", "ILLI")),
    ("Northwestern Wildcats", ("Northwestern", "NU", "Wildcats", "NW")),
    ("Purdue Boilermakers", ("Purdue", "Boilermakers", "PUR", "PURD")),
    ("Maryland Terrapins", ("Maryland", "Terps", "Terrapins", "MD")),
    ("Rutgers Scarlet Knights", ("Rutgers", "RU", "Scarlet Knights", "RUTG")),

    # Big 12
    ("Texas Longhorns", ("Texas", "UT", "Longhorns", "TEX")),
    ("Oklahoma Sooners", ("Oklahoma", "OU", "Sooners", "OKLA")),
    ("Oklahoma State Cowboys", ("Oklahoma State", "Oklahoma St.", "OSU", "OK State", "OKST")),
    ("Texas Tech Red Raiders", ("Texas Tech", "Tech", "TTU", "Red Raiders", "TXTC")),
    ("Baylor Bears", ("Baylor", "BU", "Bears", "BAY")),
    ("TCU Horned Frogs", ("TCU", "Texas Christian", "Horned Frogs")),
    ("Kansas Jayhawks", ("Kansas", "KU", "Jayhawks", "KAN")),
    ("Kansas State Wildcats", ("Kansas State", "Kansas St.", "K-State", "KSU", "KAST")),
    ("West Virginia Mountaineers", ("West Virginia", "WVU", "Mountaineers", "WV")),
    ("Cincinnati Bearcats", ("Cincinnati", "Cincy", "UC", "Bearcats", "CIN")),
    ("Houston Cougars", ("Houston", "UH", "Cougars", "HOU")),
    ("UCF Knights", ("UCF", "Central Florida", "Knights")),
    ("BYU Cougars", ("BYU", "Brigham Young", "Cougars")),

    # ACC
    ("Clemson Tigers", ("Clemson", "Tigers", "CLEM")),
    ("Florida State Seminoles", ("Florida State", "Florida St.", "FSU", "Seminoles", "FLST")),
    ("Miami Hurricanes", ("Miami", "The U", "Canes", "Hurricanes", "MIA")),
    ("North Carolina Tar Heels", ("North Carolina", "UNC", "Tar Heels", "NC", "NCAR")),
    ("North Carolina State Wolfpack", ("North Carolina State", "NC State", "NCSU", "Wolfpack", "NCST")),
    ("Duke Blue Devils", ("Duke", "Blue Devils", "DUKE")),
    ("Virginia Cavaliers", ("Virginia", "UVA", "Cavaliers", "VA")),
    ("Virginia Tech Hokies", ("Virginia Tech", "VT", "Hokies", "VTECH")),
    ("Louisville Cardinals", ("Louisville", "UL", "Cardinals", "LOU")),
    ("Syracuse Orange", ("Syracuse", "Cuse", "Orange", "SYR")),
    ("Pittsburgh Panthers", ("Pittsburgh", "Pitt", "Panthers", "PIT")),
    ("Boston College Eagles", ("Boston College", "BC", "Eagles", "BOST")),
    ("Wake Forest Demon Deacons", ("Wake Forest", "Wake", "Demon Deacons", "WAKE")),
    ("Georgia Tech Yellow Jackets", ("Georgia Tech", "GT", "Yellow Jackets", "GATECH")),

    # Pac-12
    ("Oregon Ducks", ("Oregon", "Ducks", "ORE", "OREG")),
    ("Oregon State Beavers", ("Oregon State", "Oregon St.", "OSU", "Beavers", "ORST")),
    ("Washington Huskies", ("Washington", "UW", "Huskies", "WASH")),
    ("Washington State Cougars", ("Washington State", "Washington St.", "WSU", "Wazzu", "Cougars", "WAST")),
    ("USC Trojans", ("USC", "Southern Cal", "Trojans")),
    ("UCLA Bruins", ("UCLA", "Bruins")),
    ("Stanford Cardinal", ("Stanford", "Cardinal", "STAN")),
    ("California Golden Bears", ("California", "Cal", "Golden Bears", "CAL")),
    ("Arizona Wildcats", ("Arizona", "UA", "Wildcats", "ARIZ")),
    ("Arizona State Sun Devils", ("Arizona State", "Arizona St.", "ASU", "Sun Devils", "AZST")),
    ("Colorado Buffaloes", ("Colorado", "CU", "Buffs", "Buffaloes", "COLO")),
    ("Utah Utes", ("Utah", "Utes", "UTAH")),

    # Independents / service academies
    ("Notre Dame Fighting Irish", ("Notre Dame", "ND", "Fighting Irish", "Irish")),
    ("Army Black Knights", ("Army", "Black Knights", "ARMY")),
    ("Navy Midshipmen", ("Navy", "Midshipmen", "NAVY")),
    ("Air Force Falcons", ("Air Force", "Falcons", "AFA")),

    # Group of Five
    ("SMU Mustangs", ("SMU", "Southern Methodist", "Mustangs")),
    ("Memphis Tigers", ("Memphis", "Tigers", "MEM")),
    ("Tulane Green Wave", ("Tulane", "Green Wave", "TULN")),
    ("Tulsa Golden Hurricane", ("Tulsa", "Golden Hurricane", "TULS")),
    ("South Florida Bulls", ("South Florida", "S. Florida", "USF", "Bulls")),
    ("Temple Owls", ("Temple", "Owls", "TEM")),
    ("East Carolina Pirates", ("East Carolina", "ECU", "Pirates")),
    ("Boise State Broncos", ("Boise State", "Boise St.", "BSU", "Broncos", "BOIS")),
    ("Fresno State Bulldogs", ("Fresno State", "Fresno St.", "Bulldogs", "FRES")),
    ("San Diego State Aztecs", ("San Diego State", "San Diego St.", "SDSU", "Aztecs")),
    ("UNLV Rebels", ("UNLV", "Nevada Las Vegas", "Rebels")),
    ("Nevada Wolf Pack", ("Nevada", "Wolf Pack", "NEV")),
    ("Hawaii Rainbow Warriors", ("Hawaii", "Rainbow Warriors", "HAW")),
    ("San Jose State Spartans", ("San Jose State", "San Jose St.", "SJSU", "Spartans")),
    ("UAB Blazers", ("UAB", "Alabama Birmingham", "Blazers")),
    ("UTSA Roadrunners", ("UTSA", "UT San Antonio", "Roadrunners")),
    ("UTEP Miners", ("UTEP", "UT El Paso", "Miners")),
    ("Rice Owls", ("Rice", "Owls", "RICE")),
    ("North Texas Mean Green", ("North Texas", "UNT", "Mean Green", "NTEX")),
    ("Charlotte 49ers", ("Charlotte", "Charlotte 49ers", "CHAR", "49ers")),
    ("Marshall Thundering Herd", ("Marshall", "Thundering Herd", "MRSH")),
    ("Western Michigan Broncos", ("Western Michigan", "Western Mich", "WMU", "Broncos", "WMICH")),
    ("Central Michigan Chippewas", ("Central Michigan", "Central Mich", "CMU", "Chippewas", "CMICH")),
    ("Eastern Michigan Eagles", ("Eastern Michigan", "Eastern Mich", "EMU", "Eagles", "EMICH")),
    ("Northern Illinois Huskies", ("Northern Illinois", "Northern Ill", "NIU", "Huskies", "NILL")),
    ("Toledo Rockets", ("Toledo", "Rockets", "TOL")),
    ("Bowling Green Falcons", ("Bowling Green", "BGSU", "Falcons", "BGWL")),
    ("Kent State Golden Flashes", ("Kent State", "Kent St.", "Golden Flashes", "KENT")),
    ("Akron Zips", ("Akron", "Zips", "AKR")),
    ("Ohio Bobcats", ("Ohio", "Bobcats", "OHIO")),
    ("Miami (OH) RedHawks", ("Miami (OH)", "Miami Ohio", "Miami-Ohio", "RedHawks", "MIOH")),
    ("Ball State Cardinals", ("Ball State", "Ball St.", "Cardinals", "BALL")),
    ("Buffalo Bulls", ("Buffalo", "Bulls", "BUFF")),

    # FCS programs that move up or schedule FBS games
    ("James Madison Dukes", ("James Madison", "JMU", "Dukes", "JMAD")),
    ("Liberty Flames", ("Liberty", "Flames", "LIB")),
    ("Jacksonville State Gamecocks", ("Jacksonville State", "Jacksonville St.", "JSU", "Gamecocks", "JKST")),
    ("Sam Houston State Bearkats", ("Sam Houston State", "Sam Houston St.", "SHSU", "Bearkats", "SHST")),
    ("Missouri State Bears", ("Missouri State", "Missouri St.", "Bears", "MOST")),
    ("Arkansas State Red Wolves", ("Arkansas State", "Arkansas St.", "Red Wolves", "ARST")),
    ("Georgia State Panthers", ("Georgia State", "Georgia St.", "Panthers", "GAST")),
    ("Georgia Southern Eagles", ("Georgia Southern", "Eagles", "GASOU")),
    ("Louisiana Tech Bulldogs", ("Louisiana Tech", "La Tech", "Bulldogs", "LTECH")),
    ("UL Monroe Warhawks", ("UL Monroe", "Louisiana Monroe", "ULM", "Warhawks", "ULMON")),
    ("South Alabama Jaguars", ("South Alabama", "USA", "Jaguars", "SALA")),
    ("Troy Trojans", ("Troy", "Trojans", "TROY")),
    ("Middle Tennessee Blue Raiders", ("Middle Tennessee", "Middle Tenn", "MTSU", "Blue Raiders", "MTENN")),
    ("Western Kentucky Hilltoppers", ("Western Kentucky", "WKU", "Hilltoppers", "WKEN")),
    ("FIU Panthers", ("FIU", "Florida International", "Panthers")),
    ("FAU Owls", ("FAU", "Florida Atlantic", "Owls")),
    ("Louisiana Ragin' Cajuns", ("Louisiana", "Louisiana Lafayette", "ULL", "Ragin' Cajuns", "LALA")),
    ("New Mexico State Aggies", ("New Mexico State", "New Mexico St.", "NMSU", "Aggies", "NMST")),
    ("New Mexico Lobos", ("New Mexico", "Lobos", "NMEX")),
    ("Utah State Aggies", ("Utah State", "Utah St.", "USU", "Aggies", "UTST")),
    ("Wyoming Cowboys", ("Wyoming", "Cowboys", "WYO")),
    ("Colorado State Rams", ("Colorado State", "Colorado St.", "CSU", "Rams", "COST")),
    ("Connecticut Huskies", ("Connecticut", "UConn", "Huskies", "CONN")),
    ("UMass Minutemen", ("UMass", "Massachusetts", "Minutemen", "UMAS")),
    ("Old Dominion Monarchs", ("Old Dominion", "ODU", "Monarchs", "ODOM")),
    ("Coastal Carolina Chanticleers", ("Coastal Carolina", "CCU", "Chanticleers", "CCAR")),
    ("Appalachian State Mountaineers", ("Appalachian State", "App State", "Mountaineers", "APPS")),
    ("Texas State Bobcats", ("Texas State", "Texas St.", "Bobcats", "TXST")),
    ("Southern Miss Golden Eagles", ("Southern Miss", "Southern Mississippi", "USM", "Golden Eagles", "SMIS")),
    ("Delaware Blue Hens", ("Delaware", "Blue Hens", "DEL")),
    ("Kennesaw State Owls", ("Kennesaw State", "Kennesaw St.", "KSU", "Owls", "KENN")),
)

# Tokens that mark a name as a college program
STATE_SCHOOL_TOKENS = ("State", "University", "College", "Tech", "A&M")

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_team_name(name: str) -> str:
    """Trim, strip punctuation, collapse whitespace and lowercase."""
    text = _NON_WORD.sub("", name.strip())
    return _WHITESPACE.sub(" ", text).strip().lower()


class TeamDirectory:
    """
    Read-only catalog of canonical team names and aliases per league.

    Usage:
        directory = get_team_directory()
        directory.lookup("Philly", League.NFL)
        # -> ("Philadelphia Eagles", False)
    """

    def __init__(self, catalog: Mapping[League, Tuple[Tuple[str, Tuple[str, ...]], ...]]):
        teams: Dict[League, Mapping[str, Tuple[str, ...]]] = {}
        normalized: Dict[League, Tuple[Tuple[str, str, Tuple[str, ...]], ...]] = {}

        for league, entries in catalog.items():
            league_teams: Dict[str, Tuple[str, ...]] = {}
            rows = []
            for canonical, aliases in entries:
                if canonical in league_teams:
                    raise ValueError(f"Duplicate canonical team {canonical!r} in {league.value}")
                league_teams[canonical] = tuple(aliases)
                rows.append((
                    canonical,
                    normalize_team_name(canonical),
                    tuple(normalize_team_name(alias) for alias in aliases),
                ))
            teams[league] = MappingProxyType(league_teams)
            normalized[league] = tuple(rows)

        self._teams = MappingProxyType(teams)
        self._normalized = MappingProxyType(normalized)
        self._abbreviations = MappingProxyType({
            league: self._build_abbreviations(league_teams)
            for league, league_teams in teams.items()
        })

    @staticmethod
    def _build_abbreviations(league_teams: Mapping[str, Tuple[str, ...]]) -> Mapping[str, str]:
        """Short all-caps aliases (<= 4 chars), first team wins."""
        abbreviations: Dict[str, str] = {}
        for canonical, aliases in league_teams.items():
            for alias in aliases:
                if len(alias) <= 4 and alias == alias.upper():
                    abbreviations.setdefault(alias.lower(), canonical)
        return MappingProxyType(abbreviations)

    @property
    def leagues(self) -> Tuple[League, ...]:
        return tuple(self._teams.keys())

    def teams(self, league: League) -> Mapping[str, Tuple[str, ...]]:
        """Canonical name -> aliases for one league, in catalog order."""
        return self._teams.get(league, MappingProxyType({}))

    def abbreviations(self, league: League) -> Mapping[str, str]:
        """Lowercased short abbreviation -> canonical name."""
        return self._abbreviations.get(league, MappingProxyType({}))

    def search_keys(self, league: League) -> Iterator[Tuple[str, str]]:
        """Yield (searchable text, canonical name) for names then aliases of each team."""
        for canonical, aliases in self.teams(league).items():
            yield canonical, canonical
            for alias in aliases:
                yield alias, canonical

    def lookup(self, name: str, league: League) -> Optional[Tuple[str, bool]]:
        """
        Exact lookup of a name against one league.

        Returns:
            (canonical name, is_alias) or None when nothing matches
        """
        normalized = normalize_team_name(name)
        if not normalized:
            return None

        for canonical, normalized_canonical, normalized_aliases in self._normalized.get(league, ()):
            if normalized_canonical == normalized:
                return canonical, False
            if normalized in normalized_aliases:
                return canonical, True

        return None

    def league_of(self, name: str) -> Optional[League]:
        """First league whose catalog knows the name exactly (NFL checked first)."""
        for league in self.leagues:
            if self.lookup(name, league):
                return league
        return None

    def all_teams(self, league: League) -> List[Dict[str, object]]:
        """Canonical names with aliases, for reference listings."""
        return [
            {"official": canonical, "aliases": list(aliases)}
            for canonical, aliases in self.teams(league).items()
        ]


@lru_cache()
def get_team_directory() -> TeamDirectory:
    """Get the shared directory instance."""
    directory = TeamDirectory({League.NFL: NFL_TEAMS, League.NCAAF: NCAAF_TEAMS})
    logger.debug(
        f"Team directory loaded: {len(directory.teams(League.NFL))} NFL, "
        f"{len(directory.teams(League.NCAAF))} NCAAF teams"
    )
    return directory
