"""Common given-name equivalents (nickname -> canonical form)."""

from __future__ import annotations

GIVEN_NAME_EQUIVALENTS = {
    "alex": "alexander",
    "alexander": "alexander",
    "alexandra": "alexandra",
    "alexis": "alexander",
    "ally": "allison",
    "ann": "anne",
    "anna": "anne",
    "annie": "anne",
    "anthony": "anthony",
    "antonio": "antonio",
    "beth": "elizabeth",
    "betsy": "elizabeth",
    "betty": "elizabeth",
    "bill": "william",
    "billy": "william",
    "bob": "robert",
    "bobby": "robert",
    "charles": "charles",
    "charlie": "charles",
    "charlotte": "charlotte",
    "chaz": "charles",
    "che": "ernesto",
    "chuck": "charles",
    "cathy": "catherine",
    "catherine": "catherine",
    "cathie": "catherine",
    "cathryn": "catherine",
    "frank": "francis",
    "francis": "francis",
    "francisco": "francisco",
    "fran": "francis",
    "frederic": "frederick",
    "frederick": "frederick",
    "fred": "frederick",
    "freddie": "frederick",
    "freddy": "frederick",
    "harold": "harold",
    "harry": "harry",
    "hal": "harold",
    "hank": "henry",
    "henry": "henry",
    "jack": "john",
    "jacob": "jacob",
    "jake": "jacob",
    "james": "james",
    "jamie": "james",
    "jen": "jennifer",
    "jenn": "jennifer",
    "jenny": "jennifer",
    "jennifer": "jennifer",
    "jesse": "jessica",
    "jess": "jessica",
    "jessica": "jessica",
    "jim": "james",
    "jimmy": "james",
    "joe": "joseph",
    "joey": "joseph",
    "john": "john",
    "jon": "jonathan",
    "jonathan": "jonathan",
    "jose": "jose",
    "joseph": "joseph",
    "joyce": "joyce",
    "kate": "katherine",
    "katherine": "katherine",
    "kathy": "catherine",
    "katy": "katherine",
    "katie": "katherine",
    "liz": "elizabeth",
    "lizzie": "elizabeth",
    "lou": "louis",
    "louis": "louis",
    "maggie": "margaret",
    "margaret": "margaret",
    "marie": "mary",
    "mary": "mary",
    "megan": "margaret",
    "meg": "margaret",
    "michael": "michael",
    "mick": "michael",
    "mickey": "michael",
    "mike": "michael",
    "manuel": "manuel",
    "manu": "manuel",
    "nancy": "anne",
    "nick": "nicholas",
    "nicholas": "nicholas",
    "nico": "nicholas",
    "paco": "francisco",
    "patricia": "patricia",
    "patty": "patricia",
    "peggy": "margaret",
    "pepe": "jose",
    "rick": "richard",
    "rich": "richard",
    "richard": "richard",
    "ricky": "richard",
    "rob": "robert",
    "robbie": "robert",
    "robert": "robert",
    "ron": "ronald",
    "ronnie": "ronald",
    "ronald": "ronald",
    "rose": "rose",
    "rosie": "rose",
    "sasha": "alexander",
    "sandy": "alexander",
    "ted": "theodore",
    "teddy": "theodore",
    "theodore": "theodore",
    "toni": "antonio",
    "tonya": "antonia",
    "will": "william",
    "willie": "william",
    "william": "william",
}


def canonical_given_name(token: str) -> str:
    lowered = token.lower()
    return GIVEN_NAME_EQUIVALENTS.get(lowered, lowered)


def are_equivalent(first: str, second: str) -> bool:
    return canonical_given_name(first) == canonical_given_name(second)


__all__ = ["GIVEN_NAME_EQUIVALENTS", "canonical_given_name", "are_equivalent"]
