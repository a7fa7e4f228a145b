"""
services/locations.py

Location hierarchy used to broaden free-text location search.

`location` columns hold whatever the user typed ("Anna Nagar, Chennai"), so a
search for "India" has to become a set of substring matches covering every
state, city and local synonym below India. The hierarchy lives in the
`locations` table, seeded from LOCATION_SEED, and is loaded once at startup
into a LocationIndex. `expand_location` is a pure function over that index.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.location import Location

logger = logging.getLogger(__name__)

# Aliases shorter than this resolve a query ("tn" -> tamil nadu) but are never
# emitted as substring tokens ("ka" would match "kolkata").
MIN_TOKEN_LENGTH = 3

# (name, type, parent, aliases). Parents are listed before their children.
LOCATION_SEED = [
    # India
    ("india", "country", None, ["indian", "bharat"]),

    ("tamil nadu", "state", "india", ["tn", "tamilnadu"]),
    ("chennai", "city", "tamil nadu", [
        "madras", "tambaram", "velachery", "omr", "it corridor", "anna nagar",
        "t nagar", "adyar", "chrompet", "porur", "sholinganallur",
    ]),
    ("coimbatore", "city", "tamil nadu", ["kovai", "cbe"]),
    ("madurai", "city", "tamil nadu", ["temple city"]),
    ("salem", "city", "tamil nadu", []),
    ("tirupur", "city", "tamil nadu", []),
    ("erode", "city", "tamil nadu", []),
    ("vellore", "city", "tamil nadu", []),
    ("tiruchirappalli", "city", "tamil nadu", ["trichy"]),
    ("tirunelveli", "city", "tamil nadu", []),
    ("thanjavur", "city", "tamil nadu", []),
    ("tuticorin", "city", "tamil nadu", []),
    ("dindigul", "city", "tamil nadu", []),
    ("karur", "city", "tamil nadu", []),
    ("cuddalore", "city", "tamil nadu", []),
    ("kumbakonam", "city", "tamil nadu", []),
    ("hosur", "city", "tamil nadu", []),
    ("nagercoil", "city", "tamil nadu", []),
    ("kanchipuram", "city", "tamil nadu", []),
    ("ooty", "city", "tamil nadu", ["ootacamund", "udhagamandalam"]),
    ("kodaikanal", "city", "tamil nadu", []),

    ("karnataka", "state", "india", ["ka"]),
    ("bangalore", "city", "karnataka", [
        "bengaluru", "blr", "whitefield", "electronic city", "koramangala",
        "indiranagar", "hsr layout", "marathahalli", "btm layout", "jp nagar",
    ]),
    ("mysore", "city", "karnataka", ["mysuru"]),
    ("mangalore", "city", "karnataka", ["mangaluru"]),
    ("hubli", "city", "karnataka", []),
    ("belgaum", "city", "karnataka", []),
    ("dharwad", "city", "karnataka", []),
    ("bellary", "city", "karnataka", []),
    ("tumkur", "city", "karnataka", []),
    ("shimoga", "city", "karnataka", []),
    ("udupi", "city", "karnataka", []),
    ("hassan", "city", "karnataka", []),

    ("maharashtra", "state", "india", ["mh"]),
    ("mumbai", "city", "maharashtra", [
        "bombay", "navi mumbai", "bandra", "andheri", "borivali", "dadar",
        "mulund", "vikhroli", "powai",
    ]),
    ("pune", "city", "maharashtra", ["pimpri", "chinchwad", "hinjewadi", "wakad", "baner", "kharadi"]),
    ("nagpur", "city", "maharashtra", []),
    ("nashik", "city", "maharashtra", []),
    ("aurangabad", "city", "maharashtra", []),
    ("solapur", "city", "maharashtra", []),
    ("thane", "city", "maharashtra", []),
    ("kalyan", "city", "maharashtra", []),
    ("kolhapur", "city", "maharashtra", []),
    ("nanded", "city", "maharashtra", []),

    ("delhi", "state", "india", ["ncr", "delhi ncr"]),
    ("new delhi", "city", "delhi", ["dwarka", "rohini", "connaught place"]),
    ("noida", "city", "delhi", ["greater noida", "noida extension", "sector 62", "sector 16"]),
    ("ghaziabad", "city", "delhi", []),

    ("haryana", "state", "india", ["hr"]),
    ("gurgaon", "city", "haryana", ["gurugram", "cyber city", "udyog vihar", "golf course road"]),
    ("faridabad", "city", "haryana", []),
    ("panipat", "city", "haryana", []),
    ("ambala", "city", "haryana", []),
    ("karnal", "city", "haryana", []),

    ("west bengal", "state", "india", ["wb"]),
    ("kolkata", "city", "west bengal", ["calcutta", "salt lake", "new town", "rajarhat"]),
    ("howrah", "city", "west bengal", []),
    ("durgapur", "city", "west bengal", []),
    ("siliguri", "city", "west bengal", []),
    ("asansol", "city", "west bengal", []),
    ("darjeeling", "city", "west bengal", []),

    ("gujarat", "state", "india", ["gj"]),
    ("ahmedabad", "city", "gujarat", ["amdavad", "bopal", "sg highway"]),
    ("surat", "city", "gujarat", ["diamond city"]),
    ("vadodara", "city", "gujarat", ["baroda"]),
    ("rajkot", "city", "gujarat", []),
    ("bhavnagar", "city", "gujarat", []),
    ("gandhinagar", "city", "gujarat", []),

    ("rajasthan", "state", "india", ["rj"]),
    ("jaipur", "city", "rajasthan", ["pink city"]),
    ("jodhpur", "city", "rajasthan", []),
    ("udaipur", "city", "rajasthan", []),
    ("kota", "city", "rajasthan", []),
    ("ajmer", "city", "rajasthan", []),
    ("bikaner", "city", "rajasthan", []),

    ("uttar pradesh", "state", "india", ["up"]),
    ("lucknow", "city", "uttar pradesh", ["gomti nagar"]),
    ("kanpur", "city", "uttar pradesh", ["kanpur nagar"]),
    ("agra", "city", "uttar pradesh", []),
    ("varanasi", "city", "uttar pradesh", []),
    ("meerut", "city", "uttar pradesh", []),
    ("prayagraj", "city", "uttar pradesh", ["allahabad"]),
    ("bareilly", "city", "uttar pradesh", []),

    ("andhra pradesh", "state", "india", ["ap"]),
    ("visakhapatnam", "city", "andhra pradesh", ["vizag", "vishakhapatnam"]),
    ("vijayawada", "city", "andhra pradesh", []),
    ("guntur", "city", "andhra pradesh", []),
    ("tirupati", "city", "andhra pradesh", []),
    ("rajahmundry", "city", "andhra pradesh", []),

    ("telangana", "state", "india", ["ts"]),
    ("hyderabad", "city", "telangana", [
        "secunderabad", "hitec city", "hitech city", "gachibowli", "kondapur",
        "madhapur", "kukatpally",
    ]),
    ("warangal", "city", "telangana", []),
    ("nizamabad", "city", "telangana", []),

    ("kerala", "state", "india", ["kl"]),
    ("kochi", "city", "kerala", ["cochin", "ernakulam"]),
    ("thiruvananthapuram", "city", "kerala", ["trivandrum"]),
    ("kozhikode", "city", "kerala", ["calicut"]),
    ("kottayam", "city", "kerala", []),
    ("thrissur", "city", "kerala", []),
    ("munnar", "city", "kerala", []),
    ("wayanad", "city", "kerala", []),
    ("alappuzha", "city", "kerala", []),
    ("kollam", "city", "kerala", []),

    ("punjab", "state", "india", ["pb"]),
    ("chandigarh", "city", "punjab", ["tricity", "mohali", "panchkula"]),
    ("ludhiana", "city", "punjab", []),
    ("amritsar", "city", "punjab", []),
    ("jalandhar", "city", "punjab", []),
    ("patiala", "city", "punjab", []),

    ("himachal pradesh", "state", "india", ["hp"]),
    ("shimla", "city", "himachal pradesh", []),
    ("manali", "city", "himachal pradesh", []),

    ("odisha", "state", "india", []),
    ("jharkhand", "state", "india", []),
    ("assam", "state", "india", []),
    ("madhya pradesh", "state", "india", ["mp"]),
    ("chhattisgarh", "state", "india", []),
    ("uttarakhand", "state", "india", []),
    ("jammu and kashmir", "state", "india", []),
    ("goa", "state", "india", []),
    ("bihar", "state", "india", []),

    # Saudi Arabia
    ("saudi arabia", "country", None, ["saudi", "ksa"]),
    ("eastern province", "region", "saudi arabia", ["eastern region"]),
    ("dammam", "city", "eastern province", []),
    ("khobar", "city", "eastern province", ["al khobar"]),
    ("dhahran", "city", "eastern province", []),
    ("jubail", "city", "eastern province", ["al jubail"]),
    ("hofuf", "city", "eastern province", []),
    ("qatif", "city", "eastern province", []),
    ("al hasa", "city", "eastern province", []),
    ("riyadh region", "region", "saudi arabia", []),
    ("riyadh", "city", "riyadh region", ["ar riyadh"]),
    ("makkah region", "region", "saudi arabia", []),
    ("jeddah", "city", "makkah region", ["jiddah"]),
    ("makkah", "city", "makkah region", ["mecca"]),
    ("madinah region", "region", "saudi arabia", []),
    ("madinah", "city", "madinah region", ["medina"]),

    # UAE
    ("uae", "country", None, ["united arab emirates", "emirates"]),
    ("dubai", "city", "uae", ["dxb"]),
    ("abu dhabi", "city", "uae", ["abudhabi"]),
    ("sharjah", "city", "uae", []),
    ("ajman", "city", "uae", []),
    ("ras al khaimah", "city", "uae", []),
    ("fujairah", "city", "uae", []),
    ("umm al quwain", "city", "uae", []),
]


def normalize(text: Optional[str]) -> str:
    return " ".join((text or "").lower().split())


@dataclass
class LocationNode:
    name: str
    type: str
    aliases: List[str] = field(default_factory=list)
    children: List["LocationNode"] = field(default_factory=list)


class LocationIndex:
    """In-memory adjacency map of the location hierarchy."""

    def __init__(self, nodes: Iterable[LocationNode]):
        self.nodes: Dict[str, LocationNode] = {}
        self.alias_map: Dict[str, LocationNode] = {}
        for node in nodes:
            self.nodes[node.name] = node
        for node in self.nodes.values():
            for alias in node.aliases:
                # First registration wins on shared aliases
                self.alias_map.setdefault(alias, node)

    def __len__(self):
        return len(self.nodes)

    def resolve(self, query: str) -> Optional[LocationNode]:
        key = normalize(query)
        return self.nodes.get(key) or self.alias_map.get(key)

    @classmethod
    def from_rows(cls, rows) -> "LocationIndex":
        """Build from Location rows (anything with id, name, type, parent_id and aliases)."""
        by_id = {}
        parents = {}
        for row in rows:
            node = LocationNode(
                name=normalize(row.name),
                type=row.type,
                aliases=[normalize(a) for a in (row.aliases or []) if normalize(a)],
            )
            by_id[row.id] = node
            parents[row.id] = row.parent_id
        for row_id, parent_id in parents.items():
            if parent_id is not None and parent_id in by_id:
                by_id[parent_id].children.append(by_id[row_id])
        return cls(by_id.values())

    @classmethod
    def from_seed(cls, seed=LOCATION_SEED) -> "LocationIndex":
        """Build straight from the seed list, without a database."""
        nodes = {}
        for name, loc_type, parent, aliases in seed:
            node = LocationNode(name=name, type=loc_type, aliases=list(aliases))
            nodes[name] = node
            if parent is not None:
                nodes[parent].children.append(node)
        return cls(nodes.values())


def expand_location(index: LocationIndex, query: Optional[str]) -> List[str]:
    """
    Expand a location query into the substring tokens that should match it.

    "chennai" -> chennai and its neighbourhood aliases
    "tamil nadu" / "tn" -> the state plus every city below it
    "india" -> every state, region and city below the country

    Unknown input falls back to the query itself; empty input yields [].
    """
    key = normalize(query)
    if not key:
        return []

    node = index.resolve(key)
    if node is None:
        return [key]

    tokens: List[str] = []
    seen = set()

    def add(token):
        if len(token) >= MIN_TOKEN_LENGTH and token not in seen:
            seen.add(token)
            tokens.append(token)

    visited = set()

    def walk(current: LocationNode):
        if current.name in visited:
            return
        visited.add(current.name)
        add(current.name)
        for alias in current.aliases:
            add(alias)
        for child in current.children:
            walk(child)

    walk(node)
    return tokens


def location_clause(column, tokens: List[str]):
    """OR of case-insensitive substring matches, or None when there is nothing to match.

    Tokens are matched literally: `%` and `_` in user input are escaped.
    """
    if not tokens:
        return None
    return or_(*[column.icontains(token, autoescape=True) for token in tokens])


def seed_locations(db: Session, seed=LOCATION_SEED) -> int:
    """Insert seed rows missing from the table. Returns how many were added."""
    existing = {loc.name: loc for loc in db.query(Location).all()}
    added = 0
    for name, loc_type, parent, aliases in seed:
        if name in existing:
            continue
        parent_row = existing.get(parent) if parent else None
        location = Location(
            name=name,
            type=loc_type,
            parent_id=parent_row.id if parent_row else None,
            aliases=list(aliases),
        )
        db.add(location)
        db.flush()
        existing[name] = location
        added += 1
    db.commit()
    if added:
        logger.info("Seeded %d locations", added)
    return added


def load_location_index(db: Session) -> LocationIndex:
    index = LocationIndex.from_rows(db.query(Location).order_by(Location.id).all())
    logger.info("Location index loaded (%d places)", len(index))
    return index
