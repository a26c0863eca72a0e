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

import copy
from oslg import oslg
from . import osstd

CN = osstd.CN

# Prototype templates (DOE reference & ZNE-ready templates rely on external
# inputs, i.e. not bundled).
_templates = ("90.1-2004",
              "90.1-2007",
              "90.1-2010",
              "90.1-2013",
              "90.1-2016",
              "90.1-2019",
              "DOE Ref Pre-1980",
              "DOE Ref 1980-2004",
              "NREL ZNE Ready 2017")

# Prototype parameters, as held in the 'prototype_database' table.
_keys = ("geometry",
         "space_type_map",
         "building_story_map",
         "space_multiplier_map",
         "system_to_space_map")


def prototypeTemplates() -> tuple:
    """Returns prototype template identifiers."""
    return _templates


def prototypeBuildings(data=None) -> tuple:
    """Returns prototype building types, e.g. "SmallOffice".

    Args:
        data (dict):
            Standards tables (optional, defaults to bundled osstd data).

    Returns:
        tuple: Building types (empty if invalid input - see logs).
    """
    mth = "prototype.prototypeBuildings"

    if data is None: data = osstd.loadStandardsData()

    if not isinstance(data, dict):
        return oslg.mismatch("data", data, dict, mth, CN.DBG, ())

    rows = data.get("prototype_database", [])

    return tuple(row["building_type"] for row in rows if "building_type" in row)


def registry(data=None) -> dict:
    """Returns prototype parameters of each template & building type pair.

    Args:
        data (dict):
            Standards tables (optional, defaults to bundled osstd data).

    Returns:
        dict: Prototype parameters, keyed "<template>_<building type>", e.g.
        "90.1-2019_SmallOffice":
        - "template" (str): template identifier
        - "building_type" (str): building type
        - "geometry" (str): geometry (OSM) file name
        - "space_type_map" (dict): space names, keyed by space type
        - "building_story_map" (dict): space names, keyed by story
        - "space_multiplier_map" (dict): multipliers, keyed by space name
        - "system_to_space_map" (list): HVAC systems & served spaces
        - "prototype_input" (dict): 'prototype_inputs' row (None if missing)
        {}: If invalid input (see logs).
    """
    mth = "prototype.registry"
    res = {}

    if data is None: data = osstd.loadStandardsData()

    if not isinstance(data, dict):
        return oslg.mismatch("data", data, dict, mth, CN.DBG, res)

    inputs = data.get("prototype_inputs", [])

    for row in data.get("prototype_database", []):
        if "building_type" not in row: continue

        bldg = row["building_type"]

        for template in _templates:
            criteria = dict(template=template, building_type=bldg)
            found    = osstd.findObjects(inputs, criteria)
            params   = dict(template=template, building_type=bldg)

            for key in _keys: params[key] = copy.deepcopy(row.get(key))

            params["prototype_input"] = copy.deepcopy(found[0]) if found else None

            res["%s_%s" % (template, bldg)] = params

    return res


def prototype(template="", building_type="", data=None) -> dict:
    """Generates a prototype building configuration, i.e. a rule
    configuration (Standard) and prototype parameters - see 'registry'.

    Args:
        template (str):
            Prototype template identifier, e.g. "90.1-2019".
        building_type (str):
            Prototype building type, e.g. "SmallOffice".
        data (dict):
            Standards tables (optional, defaults to bundled osstd data).

    Returns:
        dict: Prototype parameters, + "standard" (osstd.Standard).
        None: If unknown template or building type (see logs).

    Raises:
        ValueError: If prototype inputs can't be found.
    """
    mth = "prototype.prototype"

    if data is None: data = osstd.loadStandardsData()

    if not isinstance(data, dict):
        return oslg.mismatch("data", data, dict, mth, CN.DBG)

    protos = registry(data)
    key    = "%s_%s" % (template, building_type)

    if key not in protos:
        return oslg.invalid("prototype %s" % key, mth, 0, CN.ERR)

    res = protos[key]

    if res["prototype_input"] is None:
        msg = "Missing %s prototype input (%s)" % (key, mth)
        oslg.log(CN.FTL, msg)
        raise ValueError(msg)

    res["standard"] = osstd.Standard(template, building_type, data)

    return res
