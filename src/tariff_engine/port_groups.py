"""
Port-group codes used in carrier service contracts.

Contract sheets name trade-lane groups ("BP LAX", "LAX-LGB") instead of ports.
Each table maps a literal code to the ports it stands for; codes not in the
table are ordinary port names and pass through untouched.
"""

from __future__ import annotations

from itertools import product


PortGroups = dict[str, tuple[str, ...]]


TRANSPACIFIC_WEST_3117: PortGroups = {
    "BP TW": ("KAOHSIUNG", "TAIPEI"),
    "BP VAN": ("YANTIAN", "XIAMEN", "NINGBO", "SHANGHAI", "HONG KONG", "SHEKOU"),
    "LAX-LGB": ("LOS ANGELES", "LONG BEACH"),
    "BP SEA": ("SHANGHAI", "YANTIAN", "XIAMEN", "NINGBO", "SHEKOU", "HONG KONG"),
    "BP TIW": ("YANTIAN", "SHANGHAI", "NINGBO"),
    "BP FUJI": ("TOKYO", "NAGOYA", "KOBE"),
    "BP LAX": ("NANSHA", "YANTIAN", "XIAMEN", "SHANGHAI", "NINGBO", "QINGDAO", "TIANJINXINGANG"),
    "BP OAK": ("YANTIAN", "SHEKOU", "SHANGHAI", "NINGBO", "QINGDAO"),
    "SE ASIA BP PSW": ("PORT KLANG", "SINGAPORE", "LAEM CHABANG", "VUNG TAU", "HAIPHONG"),
    "BP PRR": ("SHANGHAI", "QINGDAO", "TIANJINXINGANG"),
}

_GCFL_PORTS = ("NINGBO", "SHANGHAI", "XIAMEN", "YANTIAN", "SHEKOU")

TRANSPACIFIC_EAST_3117: PortGroups = {
    "BP BAL": ("XIAMEN", "HONG KONG", "YANTIAN"),
    "SE ASIA BP GCFL": ("VUNG TAU", "SINGAPORE"),
    "GULF": ("HOUSTON", "MOBILE", "NEW ORLEANS"),
    "BP JAPAN": ("NAGOYA", "SHIMIZU", "TOKYO", "KOBE", "YOKOHAMA", "OSAKA", "HIROSHIMA", "MOJI", "HAKATA/FUKUOKA"),
    "NCPRC BP EC": ("SHANGHAI", "NINGBO", "QINGDAO"),
    "SE ASIA BP EC": ("VUNG TAU", "PORT KLANG", "SINGAPORE", "HAIPHONG"),
    "BP MIA": ("PORT KLANG", "HAIPHONG", "YANTIAN", "NINGBO", "SHANGHAI", "XIAMEN"),
    "SPRC BP EC": ("YANTIAN", "SHEKOU", "XIAMEN", "HONG KONG"),
    "BP GCFL": _GCFL_PORTS,
    "BP BOS": ("SHANGHAI", "NINGBO", "QINGDAO"),
    "FAK GCFL": _GCFL_PORTS,
    "BALTIMORE": ("BALTIMORE",),
    "NEW YORK": ("NEW YORK",),
    "NORFOLK": ("NORFOLK",),
    "SAVANNAH": ("SAVANNAH",),
    "CHARLESTON": ("CHARLESTON",),
    "MIAMI": ("MIAMI",),
    "TAMPA": ("TAMPA",),
    "HALIFAX": ("HALIFAX",),
}

TRANSPACIFIC_WEST_3118: PortGroups = {
    "BP PSW": (
        "YANTIAN", "SHANGHAI", "NINGBO", "XIAMEN", "KAOHSIUNG", "QINGDAO", "VUNG TAU", "TAIPEI",
        "SINGAPORE", "NANSHA", "TIANJINXINGANG", "PORT KELANG", "LAEM CHABANG", "PUSAN", "HAIPHONG",
    ),
    "PSW": ("LOS ANGELES", "LONG BEACH", "OAKLAND"),
    "LAX-LGB": ("LOS ANGELES", "LONG BEACH"),
    "BP PNW": ("YANTIAN", "HONG KONG", "SHANGHAI", "NINGBO", "XIAMEN", "KAOHSIUNG", "PUSAN"),
    "PNW": ("SEATTLE", "TACOMA"),
    "KHPNH": ("PHNOM PENH",),
}

TRANSPACIFIC_EAST_3118: PortGroups = {
    "BP NYC": (
        "BUSAN", "HONG KONG", "NINGBO", "VUNG TAU", "PORT KELANG", "QINGDAO", "SHANGHAI",
        "SINGAPORE", "XIAMEN", "YANTIAN", "KAOHSIUNG", "LAEM CHABANG",
    ),
    "BP ORF": (
        "BUSAN", "HONG KONG", "NINGBO", "VUNG TAU", "PORT KELANG", "QINGDAO", "SHANGHAI",
        "SINGAPORE", "XIAMEN", "YANTIAN", "KAOHSIUNG", "HAIPHONG", "YOKOHAMA",
    ),
    "BP SAV": (
        "BUSAN", "HONG KONG", "NINGBO", "VUNG TAU", "PORT KELANG", "QINGDAO", "SHANGHAI",
        "SINGAPORE", "XIAMEN", "YANTIAN", "KAOHSIUNG", "HAIPHONG", "YOKOHAMA", "LAEM CHABANG",
    ),
    "BP GC": ("BUSAN", "SHANGHAI", "NINGBO", "SHEKOU", "SINGAPORE", "VUNG TAU"),
    "GC": ("HOUSTON", "MOBILE", "NEW ORLEANS"),
    "BP BAL": ("XIAMEN", "KAOHSIUNG", "HONG KONG", "YANTIAN"),
    "BP BOS": ("NINGBO", "QINGDAO", "SHANGHAI"),
    "BP CHS": (
        "BUSAN", "NINGBO", "QINGDAO", "SHANGHAI", "HONG KONG", "YANTIAN", "XIAMEN",
        "VUNG TAU", "PORT KELANG", "SINGAPORE", "HAIPHONG", "LAEM CHABANG", "YOKOHAMA",
    ),
    "BP MIA": ("YANTIAN", "SHANGHAI", "NINGBO", "PUSAN", "HAIPHONG", "SINGAPORE", "YOKOHAMA"),
}

PORT_GROUP_TABLES: dict[str, PortGroups] = {
    "3117_west": TRANSPACIFIC_WEST_3117,
    "3117_east": TRANSPACIFIC_EAST_3117,
    "3118_west": TRANSPACIFIC_WEST_3118,
    "3118_east": TRANSPACIFIC_EAST_3118,
}


def expand_port(value: str, groups: PortGroups | None) -> tuple[str, ...]:
    code = str(value or "").strip()
    if groups and code.upper() in groups:
        return groups[code.upper()]
    return (code,)


def expand_port_groups(origin: str, destination: str, groups: PortGroups | None) -> list[tuple[str, str]]:
    """Every (origin, destination) pair the two cells stand for, in table order."""
    return list(product(expand_port(origin, groups), expand_port(destination, groups)))
