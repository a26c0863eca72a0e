# BSD 3-Clause License
#
# Copyright (c) 2022-2025, rd2
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice, this
#    list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright notice,
#    this list of conditions and the following disclaimer in the documentation
#    and/or other materials provided with the distribution.
#
# 3. Neither the name of the copyright holder nor the names of its
#    contributors may be used to endorse or promote products derived from
#    this software without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
# DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
# FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
# DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
# SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
# CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
# OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
# OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.

import os
import re
import csv
import json
import openstudio
from oslg import oslg
from dataclasses import dataclass, field

@dataclass(frozen=True)
class _CN:
    DBG  = oslg.CN.DEBUG
    INF  = oslg.CN.INFO
    WRN  = oslg.CN.WARN
    ERR  = oslg.CN.ERROR
    FTL  = oslg.CN.FATAL
    TOL  = 0.01                 # default numerical tolerance
    XCEL = "Xcel Energy CO EDA" # custom utility program
CN = _CN()

# Bundled standards tables (JSON), + optional user data (CSV).
_data = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")

# ASHRAE 169 (2006 or 2013) climate zone identifiers, e.g. "ASHRAE 169-2013-5A".
_czs = re.compile(r"^ASHRAE 169-(2006|2013)-(\d[A-C]?)$")

# Climate zone (code) groupings, shared by several template rules.
_cz_A0_3A = ("0A", "1A", "2A", "3A")
_cz_A0_4A = ("0A", "1A", "2A", "3A", "4A")
_cz_B_C   = ("0B", "1B", "2B", "3B", "3C", "4B", "4C", "5B", "6B",
             "7A", "7B", "8A", "8B")
_cz_0_3C  = ("0A", "1A", "0B", "1B", "2A", "2B", "3A", "3B", "3C")

# Versioned rule tables. Each template only holds what changes from its
# 'base' template: rule() walks up the chain until a key is found.
_templates = {
    "90.1-2016": dict(
        base = None,
        data_template = "90.1-2016",
        min_zone_ventilation_efficiency = 0.6
        ),
    "90.1-2019": dict(
        base = "90.1-2016",
        data_template = "90.1-2019",
        integrated_economizer = True,
        economizer_prohibited = dict(
            FixedEnthalpy       = _cz_B_C,
            FixedDryBulb        = _cz_A0_4A,
            DifferentialDryBulb = _cz_A0_4A),
        fixed_enthalpy_limit_btu_per_lb = 28.0,
        fixed_dewpoint_drybulb_limit_f  = 75.0,
        fixed_dewpoint_limit_f          = 55.0,
        dcv_limits_cfm                  = (3000, 750),
        motorized_damper_zones          = _cz_0_3C,
        sat_reset_exempt_zones          = _cz_A0_3A,
        single_zone_two_stage_btu_per_hr = 65000,
        multizone_opt_max_pct_oa        = 0.7,
        ),
    "90.1-PRM-2019": dict(
        base = "90.1-2019",
        group_min_area_ft2     = 20000,
        xcel_group_min_area_ft2 = 5000,
        system_limit_ft2       = 25000,
        system_max_ft2         = 150000,
        electric_zones         = ("1A", "2A", "3A"),
        vav_fan_type           = "Variable Speed Fan",
        srr_limit              = 3.0,
        infiltration_75pa_cfm_per_ft2 = 1.0,
        dcv_min_area_ft2       = 500,
        dcv_min_occ_per_1000ft2 = 25,
        sizing_run             = True,
        fan_power_breakdown    = True
        )
    }


@dataclass(frozen=True)
class Standard:
    """Code template (+ building type) against which rules are evaluated.

    Attributes:
        template (str):
            Template identifier, e.g. "90.1-2019" or "90.1-PRM-2019".
        building_type (str):
            Prototype building type, e.g. "Hospital" (optional).
        data (dict):
            Standards tables, keyed by table name (see loadStandardsData).
    """
    template: str
    building_type: str = ""
    data: dict = field(default_factory=dict, compare=False, repr=False)


def templates() -> tuple:
    """Returns available template identifiers."""
    return tuple(_templates.keys())


def clamp(value, minimum, maximum) -> float:
    """Clamps a value within bounds (re: Ruby's 'clamp').

    Args:
        value (float):
            A float-convertible value (to clamp).
        minimum (float):
            Lower bound.
        maximum (float):
            Upper bound.

    Returns:
        float: Clamped value. Either value, min, max or '0' if invalid inputs.

    """
    try:
        value = float(value)
    except (ValueError, TypeError):
        try:
            return float(minimum)
        except (ValueError, TypeError):
            try:
                return float(maximum)
            except (ValueError, TypeError):
                return 0.0

    try:
        minimum = float(minimum)
    except (ValueError, TypeError):
        return value

    try:
        maximum = float(maximum)
    except (ValueError, TypeError):
        return value

    if value < minimum: return minimum
    if value > maximum: return maximum

    return value


def convert(value=None, unit_from="", unit_to=""):
    """Converts a value between units, via OpenStudio's unit conversion.

    Args:
        value (float):
            A float-convertible value.
        unit_from (str):
            Original units, e.g. "m^3/s".
        unit_to (str):
            Target units, e.g. "cfm".

    Returns:
        float: Converted value.
        None: If invalid inputs (see logs).
    """
    mth = "osstd.convert"

    try:
        value = float(value)
    except (ValueError, TypeError):
        return oslg.mismatch("value", value, float, mth, CN.DBG)

    res = openstudio.convert(value, str(unit_from), str(unit_to))

    if not res:
        return oslg.invalid("%s to %s" % (unit_from, unit_to), mth, 0, CN.ERR)

    return res.get()


def climateZoneCode(climate_zone="") -> str:
    """Returns ASHRAE 169 climate zone code, e.g. "5A" for "ASHRAE 169-2013-5A".

    Args:
        climate_zone (str):
            An ASHRAE 169-2006 or 169-2013 climate zone identifier.

    Returns:
        str: Climate zone code ("" if unrecognized).
    """
    match = _czs.match(oslg.trim(climate_zone))

    if not match: return ""

    return match.group(2)


def loadUserData(path="") -> list:
    """Reads a user data CSV file (e.g. "userdata_thermal_zone.csv").

    Args:
        path (str):
            CSV file path.

    Returns:
        list: Rows, as dictionaries keyed by CSV header.
        []: If invalid input (see logs).
    """
    mth = "osstd.loadUserData"

    if not os.path.isfile(str(path)):
        return oslg.invalid("user data %s" % path, mth, 1, CN.ERR, [])

    with open(path, newline="", encoding="utf-8-sig") as f:
        rows = [dict(row) for row in csv.DictReader(f)]

    return rows


def loadStandardsData(folder=None) -> dict:
    """Loads standards tables from a folder of JSON (+ user data CSV) files.

    Each JSON file holds one or more tables, e.g. {"economizers": [...]}. Each
    "userdata_*.csv" file holds a single table, named after the file.

    Args:
        folder (str):
            Data folder (optional, defaults to bundled osstd data).

    Returns:
        dict: Tables (lists of row dictionaries), keyed by table name.
        {}: If invalid input (see logs).
    """
    mth  = "osstd.loadStandardsData"
    data = {}

    if folder is None: folder = _data

    if not os.path.isdir(str(folder)):
        return oslg.invalid("data folder", mth, 1, CN.ERR, data)

    for name in sorted(os.listdir(folder)):
        path = os.path.join(folder, name)

        if name.endswith(".json"):
            with open(path, encoding="utf-8") as f:
                tables = json.load(f)

            if not isinstance(tables, dict):
                oslg.log(CN.ERR, "Invalid table file %s (%s)" % (name, mth))
                continue

            for key, rows in tables.items():
                data.setdefault(key, []).extend(rows)

        elif name.startswith("userdata_") and name.endswith(".csv"):
            data[name[:-4]] = loadUserData(path)

    return data


def findObjects(table=None, criteria=dict()) -> list:
    """Returns table rows matching all search criteria.

    Args:
        table (list):
            Standards table, i.e. a list of row dictionaries.
        criteria (dict):
            Search criteria, e.g. {"template": "90.1-2019"}.

    Returns:
        list: Matching rows (empty if invalid inputs - see logs).
    """
    mth = "osstd.findObjects"

    if not isinstance(table, list):
        return oslg.mismatch("table", table, list, mth, CN.DBG, [])
    if not isinstance(criteria, dict):
        return oslg.mismatch("criteria", criteria, dict, mth, CN.DBG, [])

    rows = []

    for row in table:
        if not isinstance(row, dict): continue

        if all(key in row and row[key] == val for key, val in criteria.items()):
            rows.append(row)

    return rows


def findObject(table=None, criteria=dict()):
    """Returns first table row matching all search criteria.

    Args:
        table (list):
            Standards table, i.e. a list of row dictionaries.
        criteria (dict):
            Search criteria, e.g. {"template": "90.1-2019"}.

    Returns:
        dict: First matching row.
        None: If no match, or if invalid inputs (see logs).
    """
    mth  = "osstd.findObject"
    rows = findObjects(table, criteria)

    if not rows:
        oslg.log(CN.DBG, "No match for %s (%s)" % (criteria, mth))
        return None

    if len(rows) > 1:
        oslg.log(CN.WRN, "%d matches, keeping 1st (%s)" % (len(rows), mth))

    return rows[0]


def standard(template="", building_type="", data=None):
    """Generates a Standard, i.e. a template (+ building type) configuration.

    Args:
        template (str):
            Template identifier - see 'templates()'.
        building_type (str):
            Prototype building type (optional).
        data (dict):
            Standards tables (optional, defaults to bundled osstd data).

    Returns:
        Standard: A rule configuration.
        None: If invalid inputs (see logs).
    """
    mth = "osstd.standard"

    if template not in _templates:
        return oslg.invalid("template %s" % template, mth, 1, CN.ERR)

    if data is None: data = loadStandardsData()

    if not isinstance(data, dict):
        return oslg.mismatch("data", data, dict, mth, CN.DBG)

    return Standard(template, str(building_type), data)


def rule(std=None, key="", default=None):
    """Returns a template rule parameter, falling back on base templates.

    Args:
        std (Standard):
            A rule configuration.
        key (str):
            Rule parameter, e.g. "dcv_limits_cfm".
        default:
            Returned if the key isn't found along the template chain.

    Returns:
        Rule parameter (or default).
        default: If the template holds no rules (see logs).
    """
    mth = "osstd.rule"

    if not isinstance(std, Standard):
        return oslg.mismatch("std", std, Standard, mth, CN.DBG, default)
    if std.template not in _templates:
        return oslg.invalid("template %s" % std.template, mth, 1, CN.WRN, default)

    tpl = std.template

    while tpl:
        rules = _templates.get(tpl)

        if rules is None: break
        if key in rules: return rules[key]

        tpl = rules["base"]

    return default


def scheduleMinMax(sched=None) -> dict:
    """Returns MIN/MAX values of a schedule (ruleset, constant or compact).

    Design day schedules of rulesets are included.

    Args:
        sched (openstudio.model.Schedule):
            A schedule.

    Returns:
        dict:
        - "min" (float): MIN value (None if invalid input - see logs).
        - "max" (float): MAX value (None if invalid input - see logs).
    """
    mth = "osstd.scheduleMinMax"
    cl  = openstudio.model.Schedule
    res = dict(min=None, max=None)

    if not isinstance(sched, cl):
        return oslg.mismatch("sched", sched, cl, mth, CN.DBG, res)

    values = []

    if sched.to_ScheduleRuleset():
        sched = sched.to_ScheduleRuleset().get()
        values += list(sched.defaultDaySchedule().values())

        for rl in sched.scheduleRules(): values += rl.daySchedule().values()

        values += sched.summerDesignDaySchedule().values()
        values += sched.winterDesignDaySchedule().values()
    elif sched.to_ScheduleConstant():
        values.append(sched.to_ScheduleConstant().get().value())
    elif sched.to_ScheduleCompact():
        sched = sched.to_ScheduleCompact().get()
        prev  = ""

        # Values follow "Until: HH:MM" fields.
        for eg in sched.extensibleGroups():
            if "until" in prev:
                if eg.getDouble(0): values.append(eg.getDouble(0).get())

            txt = eg.getString(0)

            if txt: prev = txt.get().lower()
    else:
        oslg.log(CN.DBG, "Unsupported %s (%s)" % (sched.nameString(), mth))
        return res

    if not values: return res

    res["min"] = float(min(values))
    res["max"] = float(max(values))

    return res


def zoneSetpoints(zone=None) -> dict:
    """Returns MAX heating and MIN cooling thermostat setpoints of a zone [°C].

    Args:
        zone (openstudio.model.ThermalZone):
            A thermal zone.

    Returns:
        dict:
        - "heating" (float): MAX heating setpoint (None if missing).
        - "cooling" (float): MIN cooling setpoint (None if missing).
    """
    mth = "osstd.zoneSetpoints"
    cl  = openstudio.model.ThermalZone
    res = dict(heating=None, cooling=None)

    if not isinstance(zone, cl):
        return oslg.mismatch("zone", zone, cl, mth, CN.DBG, res)

    tstat = zone.thermostatSetpointDualSetpoint()

    if not tstat: return res

    tstat = tstat.get()

    if tstat.heatingSetpointTemperatureSchedule():
        sched = tstat.heatingSetpointTemperatureSchedule().get()
        res["heating"] = scheduleMinMax(sched)["max"]

    if tstat.coolingSetpointTemperatureSchedule():
        sched = tstat.coolingSetpointTemperatureSchedule().get()
        res["cooling"] = scheduleMinMax(sched)["min"]

    return res
