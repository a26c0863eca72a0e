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

import re
import datetime
import collections
import openstudio
from oslg import oslg
from dataclasses import dataclass
from . import osstd
from . import airloop

CN = osstd.CN

# Space conditioning categories (lower case keys).
_cats = dict(nonresconditioned = "NonResConditioned",
             resconditioned    = "ResConditioned",
             semiheated        = "Semiheated",
             unconditioned     = "Unconditioned")

# Residential (standards) space types.
_res = re.compile(r"apartment|dwelling|guest ?room|residential", re.IGNORECASE)

# Infiltration coefficients (constant, temperature, velocity, velocity²) if
# inconsistent inputs, as per the PRM user manual.
_coefficients = [0.0, 0.0, 0.224, 0.0]


@dataclass
class ZoneDCV:
    """Demand control ventilation (DCV) status of a thermal zone, as
    successively filled in by DCV pipeline phases.

    Attributes:
        name (str): thermal zone name.
        airloop (str): (1st) air loop serving the zone ("" if none).
        implemented (bool): DCV implemented in the user model.
        airloop_exception (bool): user-specified air loop DCV exception.
        zone_exception (bool): user-specified zone DCV exception.
        airloop_required (bool): air loop DCV required (90.1 6.4.3.8).
        zone_required (bool): zone DCV required (90.1 6.4.3.8).
        apxg_no_need (bool): zone DCV not required in baseline (G3.1.2.5).
    """
    name: str
    airloop: str = ""
    implemented: bool = False
    airloop_exception: bool = False
    zone_exception: bool = False
    airloop_required: bool = False
    zone_required: bool = False
    apxg_no_need: bool = True


def baselineSystemGroupMinimumArea(std=None, model=None, custom=None) -> float:
    """Returns the building area above which non-predominant conditions get
    their own baseline HVAC system type [m2].

    Args:
        std (osstd.Standard):
            A rule configuration.
        model (openstudio.model.Model):
            An OpenStudio model.
        custom (str):
            Custom program, e.g. "Xcel Energy CO EDA" (optional).

    Returns:
        float: Minimum area [m2].
        0.0: If invalid inputs (see logs).
    """
    mth = "prm.baselineSystemGroupMinimumArea"

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, 0.0)

    ft2 = osstd.rule(std, "group_min_area_ft2", 20000)

    if custom == CN.XCEL:
        ft2 = osstd.rule(std, "xcel_group_min_area_ft2", 5000)
        oslg.log(CN.INF, "Xcel EDA minimum area %d ft2 (%s)" % (ft2, mth))

    return osstd.convert(ft2, "ft^2", "m^2")


def baselineSystemNumber(std=None, model=None, climate_zone="", area_type="",
                         fuel_type="", area_ft2=0, num_stories=0, custom=None):
    """Returns the baseline HVAC system number (90.1 Table G3.1.1-3).

    Args:
        std (osstd.Standard):
            A rule configuration.
        model (openstudio.model.Model):
            An OpenStudio model.
        climate_zone (str):
            ASHRAE 169 climate zone, e.g. "ASHRAE 169-2013-5A".
        area_type (str):
            "residential", "nonresidential", "heatedonly" or "retail".
        fuel_type (str):
            "electric", "fossil" or purchased energy.
        area_ft2 (float):
            Area served [ft2].
        num_stories (int):
            Number of stories.
        custom (str):
            Custom program, e.g. "Xcel Energy CO EDA" (optional).

    Returns:
        str: "1_or_2", "3_or_4", "5_or_6", "7_or_8" or "9_or_10".
        None: If no match, or if invalid inputs (see logs).
    """
    mth = "prm.baselineSystemNumber"

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG)

    try:
        area_ft2 = float(area_ft2)
    except (ValueError, TypeError):
        return oslg.mismatch("area", area_ft2, float, mth, CN.DBG)

    try:
        num_stories = int(num_stories)
    except (ValueError, TypeError):
        return oslg.mismatch("stories", num_stories, int, mth, CN.DBG)

    if custom == CN.XCEL:
        oslg.log(CN.INF, "Xcel EDA: 90.1-2010 system types (%s)" % mth)

    lim = osstd.rule(std, "system_limit_ft2", 25000)
    top = osstd.rule(std, "system_max_ft2", 150000)

    if area_type == "residential": return "1_or_2"
    if area_type == "heatedonly":  return "9_or_10"
    if area_type == "retail":      return "3_or_4"

    if area_type != "nonresidential":
        return oslg.invalid("area type %s" % area_type, mth, 4, CN.ERR)

    if num_stories <= 3 and area_ft2 < lim:
        return "3_or_4"

    if num_stories in (4, 5) and area_ft2 < lim:
        return "5_or_6"

    if num_stories <= 5 and lim <= area_ft2 <= top:
        return "5_or_6"

    if num_stories >= 5 or area_ft2 > top:
        return "7_or_8"

    return None


def baselineSystemChangeFuelType(std=None, model=None, fuel_type="", climate_zone="", custom=None):
    """Returns the baseline heating fuel type, based on climate zone rather
    than on the proposed model (G3.1.1-3), unless purchased energy.
    """
    mth = "prm.baselineSystemChangeFuelType"

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, fuel_type)

    if custom == CN.XCEL:
        oslg.log(CN.INF, "Xcel EDA: proposed fuel type (%s)" % mth)
        return fuel_type

    if fuel_type not in ("electric", "fossil"): return fuel_type

    czc = osstd.climateZoneCode(climate_zone)

    if czc in osstd.rule(std, "electric_zones", ()): return "electric"

    return "fossil"


def baselineSystemVAVFanType(std=None, model=None) -> str:
    """Returns the fan type of baseline VAV systems."""
    mth = "prm.baselineSystemVAVFanType"

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, "")

    return osstd.rule(std, "vav_fan_type", "Variable Speed Fan")


def requiresProposedModelSizingRun(std=None, model=None) -> bool:
    mth = "prm.requiresProposedModelSizingRun"

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, False)

    return bool(osstd.rule(std, "sizing_run", False))


def skylightToRoofRatioLimit(std=None, model=None) -> float:
    """Returns the baseline skylight-to-roof ratio limit (%)."""
    mth = "prm.skylightToRoofRatioLimit"

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, 0.0)

    return float(osstd.rule(std, "srr_limit", 3.0))


def fanPowerBreakdown(std=None) -> bool:
    mth = "prm.fanPowerBreakdown"

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, False)

    return bool(osstd.rule(std, "fan_power_breakdown", False))


def spaceConditioningCategory(space=None) -> str:
    """Returns a space's conditioning category.

    A valid "space_conditioning_category" additional property takes
    precedence. Otherwise, the category is derived from zone thermostat
    setpoints: any cooling or heating >= 15°C means conditioned (residential
    if the standards space type is residential), heating < 15°C means
    semiheated.

    Args:
        space (openstudio.model.Space):
            A space.

    Returns:
        str: "NonResConditioned", "ResConditioned", "Semiheated" or
        "Unconditioned" (if invalid input - see logs).
    """
    mth = "prm.spaceConditioningCategory"
    cl  = openstudio.model.Space
    tg  = "space_conditioning_category"

    if not isinstance(space, cl):
        return oslg.mismatch("space", space, cl, mth, CN.DBG, "Unconditioned")

    if space.additionalProperties().hasFeature(tg):
        cnd = space.additionalProperties().getFeatureAsString(tg)

        if cnd and cnd.get().lower() in _cats:
            return _cats[cnd.get().lower()]

        oslg.invalid("%s %s" % (space.nameString(), tg), mth, 0, CN.ERR)

    zone = space.thermalZone()

    if not zone: return "Unconditioned"

    stps = osstd.zoneSetpoints(zone.get())
    htg  = stps["heating"]

    if stps["cooling"] is not None or (htg is not None and htg >= 15):
        if space.spaceType():
            typ = space.spaceType().get().standardsSpaceType()

            if typ and _res.search(typ.get()): return "ResConditioned"

        return "NonResConditioned"

    if htg is not None: return "Semiheated"

    return "Unconditioned"


def spaceEnvelopeArea(space=None, climate_zone="") -> float:
    """Returns a space's building envelope area [m2], i.e. gross areas (sub
    surfaces included) of conditioned or semiheated space surfaces facing
    outdoors, ground or unconditioned spaces. Space multipliers are included.

    Args:
        space (openstudio.model.Space):
            A space.
        climate_zone (str):
            ASHRAE 169 climate zone, e.g. "ASHRAE 169-2013-5A".

    Returns:
        float: Envelope area.
        0.0: If unconditioned, or if invalid inputs (see logs).
    """
    mth  = "prm.spaceEnvelopeArea"
    cl   = openstudio.model.Space
    area = 0.0

    if not isinstance(space, cl):
        return oslg.mismatch("space", space, cl, mth, CN.DBG, area)

    if spaceConditioningCategory(space) == "Unconditioned": return area

    for surface in space.surfaces():
        bnd = surface.outsideBoundaryCondition().lower()

        if bnd == "surface":
            adj = surface.adjacentSurface()

            if not adj: continue
            if not adj.get().space(): continue

            other = adj.get().space().get()

            if spaceConditioningCategory(other) != "Unconditioned": continue
        elif bnd != "outdoors" and bnd != "foundation":
            if not bnd.startswith("ground"): continue

        area += surface.grossArea() * space.multiplier()

    return area


def _infiltrations(space=None) -> list:
    """Returns space infiltration objects, else those of its space type."""
    infils = list(space.spaceInfiltrationDesignFlowRates())

    if infils: return infils

    if space.spaceType():
        return list(space.spaceType().get().spaceInfiltrationDesignFlowRates())

    return []


def infiltrationMethod(model=None):
    """Returns the infiltration input method used in a model, e.g. "Flow/Area"
    ("Flow/Area" if inconsistent, None if no infiltration).

    Args:
        model (openstudio.model.Model):
            An OpenStudio model.

    Returns:
        str: Design flow rate calculation method.
        None: If no infiltration, or if invalid input (see logs).
    """
    mth = "prm.infiltrationMethod"
    cl  = openstudio.model.Model
    res = None

    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG)

    for space in sorted(model.getSpaces(), key=lambda s: s.nameString()):
        infils = _infiltrations(space)

        if not infils: continue

        method = infils[0].designFlowRateCalculationMethod()

        if res is not None and method != res:
            oslg.log(CN.INF, "Inconsistent infiltration methods (%s)" % mth)
            return "Flow/Area"

        res = method

    return res


def infiltrationCoefficients(model=None) -> list:
    """Returns infiltration coefficients used in a model: constant,
    temperature, velocity & velocity squared terms ([0, 0, 0.224, 0] if
    inconsistent, [None, None, None, None] if no infiltration).
    """
    mth = "prm.infiltrationCoefficients"
    cl  = openstudio.model.Model
    res = [None, None, None, None]

    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, res)

    for space in sorted(model.getSpaces(), key=lambda s: s.nameString()):
        infils = _infiltrations(space)

        if not infils: continue

        infil  = infils[0]
        coeffs = [infil.constantTermCoefficient(),
                  infil.temperatureTermCoefficient(),
                  infil.velocityTermCoefficient(),
                  infil.velocitySquaredTermCoefficient()]

        if res[0] is not None and coeffs != res:
            oslg.log(CN.INF, "Inconsistent infiltration coefficients (%s)" % mth)
            return list(_coefficients)

        res = coeffs

    return res


def adjustInfiltrationToPrototypeConditions(rate=0.0) -> float:
    """Adjusts an infiltration rate at 75 Pa to the average pressure of
    prototype buildings (0.112 x rate), as per G3.1.1.4.
    """
    mth = "prm.adjustInfiltrationToPrototypeConditions"

    try:
        rate = float(rate)
    except (ValueError, TypeError):
        return oslg.mismatch("rate", rate, float, mth, CN.DBG, 0.0)

    return (1 + 0.22) * rate * ((0.5 * 0.1617 * 1.18 * 4.47**2) / 75)**0.65


def _leakage(infil=None, space=None) -> float:
    """Returns infiltration flow [m3/s] of an infiltration object, in a space."""
    if infil.designFlowRate(): return 0.0

    if infil.flowperSpaceFloorArea():
        return infil.flowperSpaceFloorArea().get() * space.floorArea()
    if infil.flowperExteriorSurfaceArea():
        return infil.flowperExteriorSurfaceArea().get() * space.exteriorArea()
    if infil.flowperExteriorWallArea():
        return infil.flowperExteriorWallArea().get() * space.exteriorWallArea()
    if infil.airChangesperHour():
        return infil.airChangesperHour().get() * space.volume() / 3600

    return 0.0


def currentEnvelopeInfiltrationAt75Pa(model=None, envelope_area_m2=0.0) -> float:
    """Returns current model air leakage at 75 Pa [m3/s per m2 of envelope],
    assuming PRM infiltration inputs (G3.1.1.4).

    Args:
        model (openstudio.model.Model):
            An OpenStudio model.
        envelope_area_m2 (float):
            Building envelope area [m2].

    Returns:
        float: Air leakage rate.
        0.0: If invalid inputs (see logs).
    """
    mth = "prm.currentEnvelopeInfiltrationAt75Pa"
    cl  = openstudio.model.Model
    tot = 0.0

    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, tot)

    try:
        envelope_area_m2 = float(envelope_area_m2)
    except (ValueError, TypeError):
        return oslg.mismatch("area", envelope_area_m2, float, mth, CN.DBG, tot)

    if envelope_area_m2 < CN.TOL:
        return oslg.zero("envelope area", mth, CN.WRN, tot)

    for space in model.getSpaces():
        if space.spaceInfiltrationDesignFlowRates():
            tot += _leakage(space.spaceInfiltrationDesignFlowRates()[0], space)

        if space.spaceType():
            infils = space.spaceType().get().spaceInfiltrationDesignFlowRates()
            if infils: tot += _leakage(infils[0], space)

    return tot / adjustInfiltrationToPrototypeConditions(1) / envelope_area_m2


def adjustedEnvelopeInfiltration(model=None, envelope_area_m2=0.0, rate=1.0) -> float:
    """Returns baseline building envelope infiltration [m3/s], from an air
    leakage rate at 75 Pa [cfm/ft2 of envelope] (G3.1.1.4).

    Args:
        model (openstudio.model.Model):
            An OpenStudio model.
        envelope_area_m2 (float):
            Building envelope area [m2].
        rate (float):
            Air leakage rate at 75 Pa [cfm/ft2].

    Returns:
        float: Total infiltration.
        0.0: If invalid inputs (see logs).
    """
    mth = "prm.adjustedEnvelopeInfiltration"
    cl  = openstudio.model.Model

    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, 0.0)

    try:
        envelope_area_m2 = float(envelope_area_m2)
        rate = float(rate)
    except (ValueError, TypeError):
        return oslg.invalid("area or rate", mth, 0, CN.DBG, 0.0)

    if abs(rate) < CN.TOL: return 0.0

    conv = osstd.convert(1, "m^3/s", "cfm") / osstd.convert(1, "m^2", "ft^2")
    adj  = adjustInfiltrationToPrototypeConditions(rate) / conv

    return adj * envelope_area_m2


def applySpaceInfiltrationRate(space=None, total=0.0, method="", coefficients=[]) -> bool:
    """Replaces a space's infiltration objects with a share of a total
    building infiltration rate, spread across conditioned spaces by exterior
    wall area ("Flow/ExteriorWallArea") or by floor area ("Flow/Area").

    Args:
        space (openstudio.model.Space):
            A space.
        total (float):
            Total building infiltration [m3/s].
        method (str):
            "Flow/ExteriorWallArea" or "Flow/Area".
        coefficients (list):
            Constant, temperature, velocity & velocity squared coefficients.

    Returns:
        bool: Whether infiltration was reset.
        False: If invalid inputs (see logs).
    """
    mth = "prm.applySpaceInfiltrationRate"
    cl  = openstudio.model.Space

    if not isinstance(space, cl):
        return oslg.mismatch("space", space, cl, mth, CN.DBG, False)

    try:
        total = float(total)
    except (ValueError, TypeError):
        return oslg.mismatch("total", total, float, mth, CN.DBG, False)

    if method not in ("Flow/ExteriorWallArea", "Flow/Area"):
        return oslg.invalid("method %s" % method, mth, 3, CN.ERR, False)

    if not isinstance(coefficients, list) or len(coefficients) != 4:
        return oslg.mismatch("coefficients", coefficients, list, mth, CN.DBG, False)

    model = space.model()
    area  = 0.0

    for spc in model.getSpaces():
        if spaceConditioningCategory(spc) == "Unconditioned": continue

        if method == "Flow/Area":
            area += spc.floorArea() * spc.multiplier()
        else:
            area += spc.exteriorWallArea() * spc.multiplier()

    # Keep existing schedule (space, then space type), else always on.
    sched = model.alwaysOnDiscreteSchedule()

    for infil in _infiltrations(space):
        if infil.schedule():
            sched = infil.schedule().get()
            break

    for infil in space.spaceInfiltrationDesignFlowRates(): infil.remove()

    if spaceConditioningCategory(space) == "Unconditioned": return True

    if area < CN.TOL:
        return oslg.zero("conditioned area", mth, CN.WRN, False)

    if method != "Flow/Area" and space.exteriorWallArea() < CN.TOL: return True

    infil = openstudio.model.SpaceInfiltrationDesignFlowRate(model)
    infil.setName("%s Infiltration" % space.nameString())

    if method == "Flow/Area":
        infil.setFlowperSpaceFloorArea(round(total / area, 13))
    else:
        infil.setFlowperExteriorWallArea(round(total / area, 13))

    infil.setSchedule(sched)
    infil.setConstantTermCoefficient(coefficients[0])
    infil.setTemperatureTermCoefficient(coefficients[1])
    infil.setVelocityTermCoefficient(coefficients[2])
    infil.setVelocitySquaredTermCoefficient(coefficients[3])
    infil.setSpace(space)

    return True


def applyInfiltrationStandard(std=None, model=None, climate_zone=""):
    """Resets model infiltration as per PRM rules (G3.1.1.4): a baseline
    building leakage rate at 75 Pa, spread across conditioned spaces. Space
    type infiltration objects are removed.

    Args:
        std (osstd.Standard):
            A rule configuration.
        model (openstudio.model.Model):
            An OpenStudio model.
        climate_zone (str):
            ASHRAE 169 climate zone, e.g. "ASHRAE 169-2013-5A".

    Returns:
        bool: Whether infiltration was reset.
        0.0: If building envelope area is null.
        False: If invalid inputs (see logs).
    """
    mth = "prm.applyInfiltrationStandard"
    cl  = openstudio.model.Model

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, False)
    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, False)

    # Effective leakage area objects are meant for residential buildings.
    if model.getSpaceInfiltrationEffectiveLeakageAreas():
        oslg.log(CN.ERR, "Invalid effective leakage area objects (%s)" % mth)

    area = sum(spaceEnvelopeArea(s, climate_zone) for s in model.getSpaces())

    if area < CN.TOL:
        oslg.zero("envelope area", mth, CN.WRN)
        return 0.0

    i75  = currentEnvelopeInfiltrationAt75Pa(model, area)
    oslg.log(CN.INF, "Proposed I75Pa %.6f m3/s.m2 (%s)" % (i75, mth))

    rate   = osstd.rule(std, "infiltration_75pa_cfm_per_ft2", 1.0)
    total  = adjustedEnvelopeInfiltration(model, area, rate)
    method = infiltrationMethod(model)
    coeffs = infiltrationCoefficients(model)

    if method not in ("Flow/Area", "Flow/ExteriorWallArea"):
        method = "Flow/ExteriorWallArea"

    if None in coeffs: coeffs = list(_coefficients)

    for space in sorted(model.getSpaces(), key=lambda s: s.nameString()):
        applySpaceInfiltrationRate(space, total, method, coeffs)

    for spacetype in model.getSpaceTypes():
        for infil in spacetype.spaceInfiltrationDesignFlowRates(): infil.remove()

    return True


def _skylights(model=None) -> tuple:
    """Returns (skylight, multiplier) tuples of conditioned space roofs, and
    total roof area [m2]."""
    skies = []
    roofs = 0.0

    for space in sorted(model.getSpaces(), key=lambda s: s.nameString()):
        if spaceConditioningCategory(space) == "Unconditioned": continue

        for surface in space.surfaces():
            if surface.outsideBoundaryCondition() != "Outdoors": continue
            if surface.surfaceType() != "RoofCeiling": continue

            roofs += surface.grossArea() * space.multiplier()

            for sub in surface.subSurfaces():
                if sub.subSurfaceType() != "Skylight": continue

                skies.append((sub, space.multiplier()))

    return skies, roofs


def applySkylightToRoofRatio(std=None, model=None) -> bool:
    """Reduces model skylight-to-roof ratio (SRR) to the PRM limit, by
    shrinking skylights toward their centroids.

    Args:
        std (osstd.Standard):
            A rule configuration.
        model (openstudio.model.Model):
            An OpenStudio model.

    Returns:
        bool: Whether SRR complies (skylights shrunk if needed).
        False: If invalid inputs (see logs).
    """
    mth = "prm.applySkylightToRoofRatio"
    cl  = openstudio.model.Model

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, False)
    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, False)

    skies, roofs = _skylights(model)

    if roofs < CN.TOL: return True

    sky = sum(sub.netArea() * mult for sub, mult in skies)
    pct = sky / roofs * 100
    srr = round(pct, 1)
    lim = skylightToRoofRatioLimit(std, model)

    oslg.log(CN.INF, "SRR %.1f%% (%s)" % (srr, mth))

    if pct <= lim: return True

    # Shrink skylight vertices toward centroids: areas scale by lim/pct.
    scale = (lim / pct)**0.5

    for sub, mult in skies:
        c = openstudio.getCentroid(sub.vertices())

        if not c:
            oslg.log(CN.WRN, "Skipping %s: no centroid (%s)" % (sub.nameString(), mth))
            continue

        c   = c.get()
        pts = openstudio.Point3dVector()

        for pt in sub.vertices():
            pts.append(openstudio.Point3d(c.x() + (pt.x() - c.x()) * scale,
                                          c.y() + (pt.y() - c.y()) * scale,
                                          c.z() + (pt.z() - c.z()) * scale))

        sub.setVertices(pts)

    return True


def _dayValues(sched=None) -> list:
    """Returns annual (dates, day schedules) of a schedule ruleset."""
    yd    = sched.model().getYearDescription()
    year  = yd.assumedYear()
    days  = sched.getDaySchedules(yd.makeDate(1, 1), yd.makeDate(12, 31))
    start = datetime.date(year, 1, 1)

    return [(start + datetime.timedelta(days=i), day) for i, day in enumerate(days)]


def _hourly(day=None) -> list:
    """Returns 24 hourly values of a day schedule."""
    return [day.getValue(openstudio.Time(0, h, 30, 0)) for h in range(24)]


def applySizingSchedules(std=None, model=None) -> bool:
    """Sets design day schedules of space loads (people, lights, electric &
    gas equipment, infiltration) as per G3.1.2.2.1: annual MAX for summer
    design days, annual MIN for winter design days (MAX for infiltration).
    Summer design days of dwelling unit loads rather hold the weekday mode.

    Args:
        std (osstd.Standard):
            A rule configuration.
        model (openstudio.model.Model):
            An OpenStudio model.

    Returns:
        bool: Whether design day schedules were set.
        False: If invalid inputs (see logs).
    """
    mth = "prm.applySizingSchedules"
    cl  = openstudio.model.Model

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, False)
    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, False)

    loads = []

    for load in model.getPeoples():
        loads.append((load, load.numberofPeopleSchedule(), False))

    for load in model.getLightss():
        loads.append((load, load.schedule(), False))

    for load in model.getElectricEquipments():
        loads.append((load, load.schedule(), False))

    for load in model.getGasEquipments():
        loads.append((load, load.schedule(), False))

    for load in model.getSpaceInfiltrationDesignFlowRates():
        loads.append((load, load.schedule(), True))

    for load, sched, infil in sorted(loads, key=lambda l: l[0].nameString()):
        ide = load.nameString()

        if not sched:
            oslg.log(CN.DBG, "%s: no schedule (%s)" % (ide, mth))
            continue

        sched = sched.get()

        if sched.to_ScheduleConstant():
            oslg.log(CN.WRN, "%s: constant schedule (%s)" % (ide, mth))
            continue

        if not sched.to_ScheduleRuleset():
            oslg.log(CN.DBG, "%s: unsupported schedule (%s)" % (ide, mth))
            continue

        sched = sched.to_ScheduleRuleset().get()

        # Dwelling unit loads?
        spacetype = load.spaceType()

        if not spacetype and load.space():
            spacetype = load.space().get().spaceType()

        dwelling = False

        if spacetype:
            typ = spacetype.get().standardsSpaceType()
            if typ and re.search("apartment", typ.get(), re.IGNORECASE): dwelling = True

        days   = _dayValues(sched)
        values = []

        for date, day in days: values += _hourly(day)

        summer = max(values)
        winter = max(values) if infil else min(values)

        if dwelling:
            weekdays = []

            for date, day in days:
                if date.weekday() < 5: weekdays += _hourly(day)

            if weekdays: summer = collections.Counter(weekdays).most_common(1)[0][0]

        dd = openstudio.model.ScheduleDay(model)
        dd.setName("%s Summer Design Day" % ide)
        dd.addValue(openstudio.Time(0, 24, 0, 0), summer)
        sched.setSummerDesignDaySchedule(dd)

        dd = openstudio.model.ScheduleDay(model)
        dd.setName("%s Winter Design Day" % ide)
        dd.addValue(openstudio.Time(0, 24, 0, 0), winter)
        sched.setWinterDesignDaySchedule(dd)

    return True


def nonMechanicallyCooledSystems(model=None) -> dict:
    """Identifies zones served by non mechanically cooled air loops, i.e.
    without cooling coils, yet with evaporative coolers or economizers. Such
    air loops & zones are tagged as "non_mechanically_cooled".

    Args:
        model (openstudio.model.Model):
            An OpenStudio model.

    Returns:
        dict: True, keyed by zone name.
        {}: If none, or if invalid input (see logs).
    """
    mth = "prm.nonMechanicallyCooledSystems"
    cl  = openstudio.model.Model
    tg  = "non_mechanically_cooled"
    res = {}

    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, res)

    for zone in sorted(model.getThermalZones(), key=lambda z: z.nameString()):
        for loop in zone.airLoopHVACs():
            if airloop.includesCoolingCoil(loop): continue

            evap = airloop.includesEvaporativeCooler(loop)
            eco  = airloop.hasEconomizer(loop)

            if not evap and not eco: continue

            loop.additionalProperties().setFeature(tg, True)

            for z in loop.thermalZones():
                z.additionalProperties().setFeature(tg, True)
                res[z.nameString()] = True

    return res


def unitHeaterDesignSupplyTemperature(zone=None):
    """Returns unit heater design supply temperature (105°F, in °C), if the
    zone holds a unit heater (G3.1.2.8.2). None otherwise.
    """
    mth = "prm.unitHeaterDesignSupplyTemperature"
    cl  = openstudio.model.ThermalZone

    if not isinstance(zone, cl):
        return oslg.mismatch("zone", zone, cl, mth, CN.DBG)

    for equip in zone.equipment():
        if equip.to_ZoneHVACUnitHeater(): return osstd.convert(105, "F", "C")

    return None


def labDeltaT(zone=None):
    """Returns supply-to-room delta T (17) of zones holding laboratories."""
    mth = "prm.labDeltaT"
    cl  = openstudio.model.ThermalZone

    if not isinstance(zone, cl):
        return oslg.mismatch("zone", zone, cl, mth, CN.DBG)

    for space in zone.spaces():
        if not space.spaceType(): continue

        typ = space.spaceType().get().standardsSpaceType()

        if typ and typ.get() == "laboratory": return 17

    return None


def setCentralPreheatCoilSPM(std=None, model=None, zones=[], coil=None) -> bool:
    """Adds a scheduled setpoint manager on a (central) preheat coil outlet:
    MAX zone heating setpoint minus 20°F (22.2°C by default).

    Args:
        std (osstd.Standard):
            A rule configuration.
        model (openstudio.model.Model):
            An OpenStudio model.
        zones (list):
            Thermal zones served by the preheat coil.
        coil (openstudio.model.HVACComponent):
            A heating coil (water, electric or gas).

    Returns:
        bool: Whether setpoint manager was added.
        False: If invalid inputs (see logs).
    """
    mth = "prm.setCentralPreheatCoilSPM"
    cl1 = openstudio.model.Model
    cl2 = openstudio.model.HVACComponent

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, False)
    if not isinstance(model, cl1):
        return oslg.mismatch("model", model, cl1, mth, CN.DBG, False)
    if not isinstance(coil, cl2):
        return oslg.mismatch("coil", coil, cl2, mth, CN.DBG, False)

    try:
        zones = list(zones)
    except TypeError:
        return oslg.mismatch("zones", zones, list, mth, CN.DBG, False)

    spt = 0.0

    for zone in zones:
        htg = osstd.zoneSetpoints(zone)["heating"]
        if htg is not None and htg > spt: spt = htg

    if spt < CN.TOL: spt = 22.2

    ide  = coil.nameString()
    sptF = osstd.convert(spt, "C", "F") - 20
    sptC = osstd.convert(sptF, "F", "C")

    node = None

    if coil.to_CoilHeatingWater():
        node = coil.to_CoilHeatingWater().get().airOutletModelObject()
    elif coil.to_CoilHeatingElectric():
        node = coil.to_CoilHeatingElectric().get().outletModelObject()
    elif coil.to_CoilHeatingGas():
        oslg.log(CN.WRN, "%s: gas preheat coil (%s)" % (ide, mth))
        node = coil.to_CoilHeatingGas().get().outletModelObject()
    else:
        return oslg.invalid("%s coil type" % ide, mth, 4, CN.ERR, False)

    if not node or not node.get().to_Node():
        return oslg.invalid("%s outlet node" % ide, mth, 4, CN.ERR, False)

    sched = openstudio.model.ScheduleRuleset(model, sptC)
    sched.setName("%s Setpoint Temp - %dF" % (ide, round(sptF)))

    spm = openstudio.model.SetpointManagerScheduled(model, sched)
    spm.setName("%s Preheat Coil Setpoint Manager" % ide)

    return spm.addToNode(node.get().to_Node().get())


def _zoneArea(zone=None) -> float:
    """Returns zone floor area [ft2] (without zone multiplier)."""
    m2 = sum(space.floorArea() for space in zone.spaces())

    return osstd.convert(m2, "m^2", "ft^2")


def _zonePeople(zone=None) -> float:
    return sum(space.numberOfPeople() for space in zone.spaces())


def _designOA(air_loop=None):
    """Returns design (min) OA flow of an air loop [cfm]: hard-sized, else
    autosized. None if unknown or if no OA system."""
    oa = air_loop.airLoopHVACOutdoorAirSystem()

    if not oa: return None

    ctl = oa.get().getControllerOutdoorAir()
    val = ctl.minimumOutdoorAirFlowRate()

    if not val: val = ctl.autosizedMinimumOutdoorAirFlowRate()
    if not val: return None

    return osstd.convert(val.get(), "m^3/s", "cfm")


def markZoneDCVExistence(model=None, res=None) -> dict:
    """Flags zones implementing DCV in the user model: served by an air loop
    with DCV enabled and holding per-person OA requirements (DCV pipeline 1).

    Args:
        model (openstudio.model.Model):
            An OpenStudio (user) model.
        res (dict):
            ZoneDCV records, keyed by zone name (optional).

    Returns:
        dict: ZoneDCV records (one per model zone), keyed by zone name.
        {}: If invalid inputs (see logs).
    """
    mth = "prm.markZoneDCVExistence"
    cl  = openstudio.model.Model

    if res is None: res = {}

    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, {})
    if not isinstance(res, dict):
        return oslg.mismatch("records", res, dict, mth, CN.DBG, {})

    for zone in model.getThermalZones():
        ide = zone.nameString()

        if ide not in res: res[ide] = ZoneDCV(ide)

        if zone.airLoopHVACs() and not res[ide].airloop:
            res[ide].airloop = zone.airLoopHVACs()[0].nameString()

    for loop in model.getAirLoopHVACs():
        oa = loop.airLoopHVACOutdoorAirSystem()

        if not oa: continue

        mv = oa.get().getControllerOutdoorAir().controllerMechanicalVentilation()

        if not mv.demandControlledVentilation(): continue

        for zone in loop.thermalZones():
            for space in zone.spaces():
                dsoa = space.designSpecificationOutdoorAir()

                if not dsoa: continue

                dsoa = dsoa.get()

                if dsoa.outdoorAirMethod() == "Maximum": continue

                if dsoa.outdoorAirFlowperPerson() > 0:
                    res[zone.nameString()].implemented = True

    return res


def _userException(table=None, name="", key="") -> bool:
    """Confirms if a user data row flags a DCV exception (case insensitive)."""
    for row in table:
        if str(row.get("name", "")).strip().lower() != name.strip().lower():
            continue

        if str(row.get(key, "")).strip().upper() == "TRUE": return True

    return False


def addDCVUserExceptions(std=None, model=None, res=None) -> dict:
    """Flags user-specified DCV exceptions, from "userdata_airloop_hvac" and
    "userdata_thermal_zone" tables (DCV pipeline 2).
    """
    mth = "prm.addDCVUserExceptions"
    cl  = openstudio.model.Model

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, {})
    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, {})
    if not isinstance(res, dict):
        return oslg.mismatch("records", res, dict, mth, CN.DBG, {})

    loops = std.data.get("userdata_airloop_hvac", [])
    zones = std.data.get("userdata_thermal_zone", [])

    for loop in model.getAirLoopHVACs():
        if not _userException(loops, loop.nameString(), "dcv_exception_airloop"):
            continue

        for zone in loop.thermalZones():
            if zone.nameString() in res:
                res[zone.nameString()].airloop_exception = True

    # Zones outside user model air loops may be served by baseline air loops.
    for zone in model.getThermalZones():
        if zone.nameString() not in res: continue

        if _userException(zones, zone.nameString(), "dcv_exception_thermal_zone"):
            res[zone.nameString()].zone_exception = True

    return res


def addDCVRequirements(std=None, model=None, res=None) -> dict:
    """Flags air loops & zones required to have DCV (90.1 6.4.3.8), given
    user exceptions (DCV pipeline 3).

    A zone requires DCV if larger than 500 ft2, with at least 25 people per
    1000 ft2. An air loop requires DCV if at least 1 of its zones does, and
    if its design OA exceeds DCV limits (with vs without economizer). A zone
    requirement only holds if its air loop requirement holds.

    Args:
        std (osstd.Standard):
            A rule configuration.
        model (openstudio.model.Model):
            An OpenStudio (user) model.
        res (dict):
            ZoneDCV records, keyed by zone name.

    Returns:
        dict: ZoneDCV records, keyed by zone name.
        {}: If invalid inputs (see logs).
    """
    mth = "prm.addDCVRequirements"
    cl  = openstudio.model.Model

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, {})
    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, {})
    if not isinstance(res, dict):
        return oslg.mismatch("records", res, dict, mth, CN.DBG, {})

    min_area = osstd.rule(std, "dcv_min_area_ft2", 500)
    min_occ  = osstd.rule(std, "dcv_min_occ_per_1000ft2", 25)

    for loop in model.getAirLoopHVACs():
        oa = _designOA(loop)

        if oa is None: continue

        zones = [z for z in loop.thermalZones() if z.nameString() in res]
        reqs  = {}

        for zone in zones:
            rec  = res[zone.nameString()]
            area = _zoneArea(zone)
            reqs[rec.name] = False

            if rec.zone_exception or area <= min_area: continue

            if _zonePeople(zone) / area * 1000 >= min_occ: reqs[rec.name] = True

        if not any(reqs.values()): continue

        limits = airloop.demandControlVentilationLimits(std, loop)
        limit  = limits[1] if airloop.hasEconomizer(loop) else limits[0]

        if oa <= limit: continue

        for zone in zones:
            rec = res[zone.nameString()]

            if rec.airloop_exception: continue

            rec.airloop_required = True
            rec.zone_required    = reqs[rec.name]

    return res


def raiseUserModelDCVErrors(model=None, res=None) -> list:
    """Logs warnings for zones implementing DCV without being required to,
    and errors for zones required to implement DCV, yet don't (DCV pipeline
    4). Baseline generation should be halted if the latter.

    Returns:
        list: Names of zones in error.
    """
    mth = "prm.raiseUserModelDCVErrors"
    cl  = openstudio.model.Model
    bad = []

    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, bad)
    if not isinstance(res, dict):
        return oslg.mismatch("records", res, dict, mth, CN.DBG, bad)

    for ide in sorted(res):
        rec = res[ide]
        req = rec.zone_required and rec.airloop_required

        if rec.implemented and not req:
            oslg.log(CN.WRN, "%s: DCV not required (%s)" % (ide, mth))

        if req and not rec.implemented:
            oslg.log(CN.ERR, "%s: DCV required (%s)" % (ide, mth))
            bad.append(ide)

    return bad


def addApxgDCVProperties(model=None, res=None) -> dict:
    """Flags zones that don't require DCV in the baseline model (G3.1.2.5):
    all zones of air loops with design OA <= 3000 cfm, otherwise zones with
    100 people per 1000 ft2 or less. Air loops without OA systems are skipped
    (DCV pipeline 5).
    """
    mth = "prm.addApxgDCVProperties"
    cl  = openstudio.model.Model

    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, {})
    if not isinstance(res, dict):
        return oslg.mismatch("records", res, dict, mth, CN.DBG, {})

    for loop in model.getAirLoopHVACs():
        if not loop.airLoopHVACOutdoorAirSystem():
            oslg.log(CN.INF, "%s: no OA intake (%s)" % (loop.nameString(), mth))
            continue

        oa = _designOA(loop)

        if oa is None:
            oslg.log(CN.WRN, "%s: unknown design OA (%s)" % (loop.nameString(), mth))
            continue

        for zone in loop.thermalZones():
            if zone.nameString() not in res: continue

            rec = res[zone.nameString()]

            if oa <= 3000:
                rec.apxg_no_need = True
                continue

            area = _zoneArea(zone)

            if area < CN.TOL:
                rec.apxg_no_need = True
                continue

            rec.apxg_no_need = _zonePeople(zone) / area * 1000 <= 100

    return res


def convertOAReqToPerArea(zone=None) -> bool:
    """Converts per-person zone OA requirements to per-area ones. Shared
    DesignSpecificationOutdoorAir objects are cloned first.

    Args:
        zone (openstudio.model.ThermalZone):
            A thermal zone.

    Returns:
        bool: Whether OA requirements were converted.
        False: If invalid input (see logs).
    """
    mth = "prm.convertOAReqToPerArea"
    cl  = openstudio.model.ThermalZone

    if not isinstance(zone, cl):
        return oslg.mismatch("zone", zone, cl, mth, CN.DBG, False)

    for space in zone.spaces():
        dsoa = space.designSpecificationOutdoorAir()

        if not dsoa: continue

        dsoa = dsoa.get()
        area = space.floorArea()

        if dsoa.outdoorAirFlowperPerson() <= 0: continue
        if area < CN.TOL: continue

        oa  = dsoa.outdoorAirFlowperPerson() * space.numberOfPeople() / area
        oa += dsoa.outdoorAirFlowperFloorArea()

        if dsoa.directUseCount() > 1:
            dsoa = dsoa.clone(space.model()).to_DesignSpecificationOutdoorAir().get()
            dsoa.setName("%s OA per area" % space.nameString())
            space.setDesignSpecificationOutdoorAir(dsoa)

        dsoa.setOutdoorAirFlowperPerson(0.0)
        dsoa.setOutdoorAirFlowperFloorArea(oa)

    return True


def setBaselineDCV(std=None, model=None, climate_zone="", res=None) -> bool:
    """Enables DCV on baseline air loops serving at least 1 zone requiring
    DCV (G3.1.2.5). OA requirements of other zones of these air loops are
    converted to per-area (DCV pipeline 6).
    """
    mth = "prm.setBaselineDCV"
    cl  = openstudio.model.Model

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, False)
    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, False)
    if not isinstance(res, dict):
        return oslg.mismatch("records", res, dict, mth, CN.DBG, False)

    for loop in model.getAirLoopHVACs():
        zones = sorted(loop.thermalZones(), key=lambda z: z.nameString())
        need  = [z.nameString() for z in zones if z.nameString() in res and
                 not res[z.nameString()].apxg_no_need]

        if not need: continue

        airloop.enableDemandControlVentilation(std, loop, climate_zone)

        for zone in zones:
            if zone.nameString() in need: continue

            convertOAReqToPerArea(zone)

    return True


def dcvPipeline(std=None, model=None, climate_zone="", baseline=None) -> dict:
    """Runs DCV pipeline phases 1 to 5 on a user (proposed) model, then sets
    baseline DCV (phase 6).

    Args:
        std (osstd.Standard):
            A rule configuration.
        model (openstudio.model.Model):
            An OpenStudio (user) model.
        climate_zone (str):
            ASHRAE 169 climate zone, e.g. "ASHRAE 169-2013-5A".
        baseline (openstudio.model.Model):
            Baseline model (optional, defaults to user model).

    Returns:
        dict: ZoneDCV records, keyed by zone name.
        {}: If invalid inputs (see logs).
    """
    mth = "prm.dcvPipeline"
    cl  = openstudio.model.Model

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, {})
    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, {})

    if baseline is None: baseline = model

    if not isinstance(baseline, cl):
        return oslg.mismatch("baseline", baseline, cl, mth, CN.DBG, {})

    res = markZoneDCVExistence(model)
    res = addDCVUserExceptions(std, model, res)
    res = addDCVRequirements(std, model, res)
    raiseUserModelDCVErrors(model, res)
    res = addApxgDCVProperties(model, res)
    setBaselineDCV(std, baseline, climate_zone, res)

    return res


def _userRow(table=None, name=""):
    for row in table:
        if row.get("name") == name: return row

    return None


def multiBuildingAreaTypes(std=None, model=None, hvac="", wwr="", swh="") -> dict:
    """Resolves HVAC, WWR & SWH building (area) types of zones, spaces &
    water use equipment, in order of precedence:
      1. object user data (e.g. "userdata_thermal_zone" row)
      2. building user data ("userdata_building" row)
      3. default building type

    Resolved types are also stored as object additional properties
    ("building_type_for_hvac", "building_type_for_wwr" or
    "building_type_for_swh").

    Args:
        std (osstd.Standard):
            A rule configuration.
        model (openstudio.model.Model):
            An OpenStudio model.
        hvac (str):
            Default HVAC building type.
        wwr (str):
            Default WWR building type.
        swh (str):
            Default SWH building type.

    Returns:
        dict:
        - "hvac" (dict): HVAC building types, keyed by zone name.
        - "wwr" (dict): WWR building types, keyed by space name.
        - "swh" (dict): SWH building types, keyed by equipment name.
        {}: If invalid inputs (see logs).
    """
    mth = "prm.multiBuildingAreaTypes"
    cl  = openstudio.model.Model
    res = dict(hvac={}, wwr={}, swh={})

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, {})
    if not isinstance(model, cl):
        return oslg.mismatch("model", model, cl, mth, CN.DBG, {})

    bldg  = _userRow(std.data.get("userdata_building", []),
                     model.getBuilding().nameString())
    specs = dict(hvac = ("userdata_thermal_zone", model.getThermalZones(), hvac),
                 wwr  = ("userdata_space", model.getSpaces(), wwr),
                 swh  = ("userdata_wateruse_equipment", model.getWaterUseEquipments(), swh))

    for key, (table, objs, default) in specs.items():
        tg   = "building_type_for_%s" % key
        rows = std.data.get(table, [])

        for row in rows:
            found = [o for o in objs if o.nameString() == row.get("name")]

            if not found:
                oslg.log(CN.ERR, "Unknown %s %s (%s)" % (table, row.get("name"), mth))

        for obj in sorted(objs, key=lambda o: o.nameString()):
            row = _userRow(rows, obj.nameString())
            typ = default

            if row and row.get(tg):
                typ = row[tg]
            elif bldg and bldg.get(tg):
                typ = bldg[tg]

            if typ: obj.additionalProperties().setFeature(tg, str(typ))

            res[key][obj.nameString()] = typ

    return res
