"""
Built-in sample datasets.

Each sample is the raw text of a small CSV-like file, including its preamble, and is
fed through the same parser as uploaded files.
"""

from typing import Dict, Optional

HUBBLE_1929 = """\
Hubble (1929), A relation between distance and radial velocity among extra-galactic nebulae
Distances in megaparsecs; recession velocities in km/s
distance velocity
0.032 170
0.034 290
0.214 -130
0.263 -70
0.275 -185
0.275 -220
0.45 200
0.5 290
0.5 270
0.63 200
0.8 300
0.9 -30
0.9 650
0.9 150
0.9 500
1.0 920
1.1 450
1.1 500
1.4 500
1.7 960
2.0 500
2.0 850
2.0 800
2.0 1090
"""

GLOBAL_TEMPERATURE = """\
Land-Ocean: Global Means
# Annual mean temperature anomaly (deg C) relative to the 1951-1980 base period
Year,No_Smoothing
1960,-0.03
1961,0.06
1962,0.03
1963,0.05
1964,-0.20
1965,-0.11
1966,-0.06
1967,-0.02
1968,-0.07
1969,0.07
1970,0.03
1971,-0.08
1972,0.01
1973,0.16
1974,-0.07
1975,-0.01
1976,-0.10
1977,0.18
1978,0.07
1979,0.16
1980,0.26
1981,0.32
1982,0.14
1983,0.31
1984,0.16
1985,0.12
1986,0.18
1987,0.32
1988,0.39
1989,0.27
1990,0.45
1991,0.41
1992,0.22
1993,0.23
1994,0.31
1995,0.45
1996,0.33
1997,0.46
1998,0.61
1999,0.38
2000,0.39
2001,0.54
2002,0.63
2003,0.62
2004,0.53
2005,0.68
2006,0.64
2007,0.66
2008,0.54
2009,0.65
2010,0.72
2011,0.61
2012,0.64
2013,0.68
2014,0.75
2015,0.90
2016,1.01
2017,0.92
2018,0.85
2019,0.98
2020,1.01
"""

SEA_LEVEL = """\
HDR Global Mean Sea Level from satellite altimetry, annual means
HDR Values in millimetres relative to the 1993 annual mean
HDR
year gmsl_mm
1993 0.0
1994 2.6
1995 5.2
1996 7.1
1997 10.5
1998 12.9
1999 13.1
2000 16.4
2001 19.9
2002 22.8
2003 25.6
2004 27.1
2005 30.4
2006 32.0
2007 32.7
2008 35.6
2009 39.3
2010 41.1
2011 38.8
2012 47.9
2013 50.4
2014 53.1
2015 59.8
2016 64.2
2017 64.6
2018 68.9
2019 74.3
2020 76.9
"""

SAMPLES: Dict[str, str] = {
    "hubble": HUBBLE_1929,
    "temperature": GLOBAL_TEMPERATURE,
    "sea_level": SEA_LEVEL,
}

SAMPLE_TITLES: Dict[str, str] = {
    "hubble": "Hubble 1929: distance vs. velocity",
    "temperature": "Global temperature anomaly",
    "sea_level": "Global mean sea level",
}


def get_sample(name: Optional[str]) -> Optional[str]:
    """Return the raw text of a sample by (case-insensitive) name, or None."""
    if not name:
        return None
    return SAMPLES.get(name.strip().lower())
