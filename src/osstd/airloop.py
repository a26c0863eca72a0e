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

import openstudio
from oslg import oslg
from . import osstd

CN = osstd.CN

# OA fraction bins of energy recovery tables, in 10% increments.
_erv_bins = ("10_to_20_percent_oa",
             "20_to_30_percent_oa",
             "30_to_40_percent_oa",
             "40_to_50_percent_oa",
             "50_to_60_percent_oa",
             "60_to_70_percent_oa",
             "70_to_80_percent_oa",
             "greater_than_80_percent_oa")

# Prototype air loops whose minimum damper positions follow AIA 2001
# healthcare ventilation requirements, rather than 62.1 VRP.
_aia = dict(Hospital   = ("VAV_ER", "VAV_ICU", "VAV_OR", "VAV_LABS", "VAV_PATRMS"),
            Outpatient = ("Outpatient F1",))


def _controllerOA(air_loop=None):
    """Returns an air loop's outdoor air controller (None if no OA system)."""
    oa = air_loop.airLoopHVACOutdoorAirSystem()

    if not oa: return None

    return oa.get().getControllerOutdoorAir()


def _supplyComponents(air_loop=None) -> list:
    """Returns air loop supply components, including unitary coils & fans."""
    comps = []

    for comp in air_loop.supplyComponents():
        comps.append(comp)

        if comp.to_AirLoopHVACUnitarySystem():
            unit = comp.to_AirLoopHVACUnitarySystem().get()

            if unit.coolingCoil(): comps.append(unit.coolingCoil().get())
            if unit.heatingCoil(): comps.append(unit.heatingCoil().get())
            if unit.supplyFan():   comps.append(unit.supplyFan().get())
        elif comp.to_AirLoopHVACUnitaryHeatPumpAirToAir():
            unit = comp.to_AirLoopHVACUnitaryHeatPumpAirToAir().get()
            comps.append(unit.coolingCoil())
            comps.append(unit.heatingCoil())
            comps.append(unit.supplyAirFan())

    return comps


def _vavTerminals(zone=None) -> list:
    """Returns VAV terminals (with or without reheat) serving a zone."""
    terminals = []

    for equip in zone.equipment():
        if equip.to_AirTerminalSingleDuctVAVReheat():
            terminals.append(equip.to_AirTerminalSingleDuctVAVReheat().get())
        elif equip.to_AirTerminalSingleDuctVAVNoReheat():
            terminals.append(equip.to_AirTerminalSingleDuctVAVNoReheat().get())

    return terminals


def _optional(val=None):
    """Returns a float from an OpenStudio getter (float or OptionalDouble)."""
    if isinstance(val, (int, float)): return float(val)
    if val: return float(val.get())

    return None


def economizerLimits(std=None, air_loop=None, climate_zone="") -> list:
    """Returns economizer high limits of an air loop, as per its economizer
    control type. Resets the controller's economizer minimum dry bulb limit.

    Args:
        std (osstd.Standard):
            A rule configuration.
        air_loop (openstudio.model.AirLoopHVAC):
            An air loop.
        climate_zone (str):
            ASHRAE 169 climate zone, e.g. "ASHRAE 169-2013-5A".

    Returns:
        list: [drybulb limit °F, enthalpy limit Btu/lb, dewpoint limit °F].
        [None, None, None]: If no economizer, or if invalid inputs (see logs).
    """
    mth = "airloop.economizerLimits"
    cl  = openstudio.model.AirLoopHVAC
    res = [None, None, None]

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, res)
    if not isinstance(air_loop, cl):
        return oslg.mismatch("air loop", air_loop, cl, mth, CN.DBG, res)

    ctl = _controllerOA(air_loop)

    if ctl is None: return res

    ctl.resetEconomizerMinimumLimitDryBulbTemperature()
    eco = ctl.getEconomizerControlType()
    ide = air_loop.nameString()

    if eco == "NoEconomizer":
        oslg.log(CN.DBG, "%s: no economizer (%s)" % (ide, mth))
        return res

    if eco == "FixedDryBulb":
        tpl = osstd.rule(std, "data_template", std.template)
        row = osstd.findObject(std.data.get("economizers", []),
                               dict(template=tpl, climate_zone=climate_zone))

        if row is None:
            oslg.log(CN.WRN, "No %s economizer limit (%s)" % (climate_zone, mth))
        else:
            res[0] = float(row["fixed_dry_bulb_high_limit_shutoff_temp"])
    elif eco == "FixedEnthalpy":
        res[1] = osstd.rule(std, "fixed_enthalpy_limit_btu_per_lb")
    elif eco == "FixedDewPointAndDryBulb":
        res[0] = osstd.rule(std, "fixed_dewpoint_drybulb_limit_f")
        res[2] = osstd.rule(std, "fixed_dewpoint_limit_f")
    else:
        oslg.log(CN.DBG, "%s: %s, no limits (%s)" % (ide, eco, mth))

    return res


def integratedEconomizerRequired(std=None, air_loop=None, climate_zone=""):
    """Confirms if air loop economizers must be integrated."""
    mth = "airloop.integratedEconomizerRequired"

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, False)

    return bool(osstd.rule(std, "integrated_economizer", False))


def hasEconomizer(air_loop=None) -> bool:
    """Confirms if an air loop holds an (OA system) economizer.

    Args:
        air_loop (openstudio.model.AirLoopHVAC):
            An air loop.

    Returns:
        bool: Whether air loop has an economizer.
        False: If invalid input (see logs).
    """
    mth = "airloop.hasEconomizer"
    cl  = openstudio.model.AirLoopHVAC

    if not isinstance(air_loop, cl):
        return oslg.mismatch("air loop", air_loop, cl, mth, CN.DBG, False)

    ctl = _controllerOA(air_loop)

    if ctl is None: return False

    return ctl.getEconomizerControlType() != "NoEconomizer"


def economizerTypeAllowable(std=None, air_loop=None, climate_zone="") -> bool:
    """Confirms if an air loop's economizer type is allowed in a climate zone.

    Args:
        std (osstd.Standard):
            A rule configuration.
        air_loop (openstudio.model.AirLoopHVAC):
            An air loop.
        climate_zone (str):
            ASHRAE 169 climate zone, e.g. "ASHRAE 169-2013-5A".

    Returns:
        bool: Whether economizer type is allowed (True if no economizer).
        False: If invalid inputs (see logs).
    """
    mth = "airloop.economizerTypeAllowable"
    cl  = openstudio.model.AirLoopHVAC

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, False)
    if not isinstance(air_loop, cl):
        return oslg.mismatch("air loop", air_loop, cl, mth, CN.DBG, False)

    if not hasEconomizer(air_loop): return True

    eco = _controllerOA(air_loop).getEconomizerControlType()
    czc = osstd.climateZoneCode(climate_zone)
    bad = osstd.rule(std, "economizer_prohibited", {})

    if czc in bad.get(eco, ()):
        oslg.log(CN.INF, "%s prohibited in %s (%s)" % (eco, czc, mth))
        return False

    return True


def multizoneVAVOptimizationRequired(std=None, air_loop=None, climate_zone="") -> bool:
    """Confirms if multizone VAV optimization is required (90.1 6.5.3.3).

    Args:
        std (osstd.Standard):
            A rule configuration.
        air_loop (openstudio.model.AirLoopHVAC):
            An air loop.
        climate_zone (str):
            ASHRAE 169 climate zone, e.g. "ASHRAE 169-2013-5A".

    Returns:
        bool: Whether optimization is required.
        False: If invalid inputs (see logs).
    """
    mth = "airloop.multizoneVAVOptimizationRequired"
    cl  = openstudio.model.AirLoopHVAC

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, False)
    if not isinstance(air_loop, cl):
        return oslg.mismatch("air loop", air_loop, cl, mth, CN.DBG, False)

    ide = air_loop.nameString()

    # Not required for systems with fan-powered terminals.
    for comp in air_loop.demandComponents():
        if comp.to_AirTerminalSingleDuctParallelPIUReheat(): return False
        if comp.to_AirTerminalSingleDuctSeriesPIUReheat():   return False

    ctl = _controllerOA(air_loop)

    if ctl is None:
        oslg.log(CN.INF, "%s: no OA intake (%s)" % (ide, mth))
        return False

    dsn = _optional(air_loop.designSupplyAirFlowRate())

    if dsn is None:
        dsn = _optional(air_loop.autosizedDesignSupplyAirFlowRate())

    if not dsn:
        oslg.log(CN.WRN, "%s: unknown supply flow (%s)" % (ide, mth))
        return False

    moa = _optional(ctl.minimumOutdoorAirFlowRate())

    if moa is None:
        moa = _optional(ctl.autosizedMinimumOutdoorAirFlowRate())

    if moa is None:
        oslg.log(CN.WRN, "%s: unknown minimum OA (%s)" % (ide, mth))
        return False

    if moa / dsn > osstd.rule(std, "multizone_opt_max_pct_oa", 0.7):
        oslg.log(CN.INF, "%s: OA fraction > limit (%s)" % (ide, mth))
        return False

    return True


def demandControlVentilationLimits(std=None, air_loop=None) -> list:
    """Returns minimum OA flows [cfm] above which DCV is required, for systems
    without and with an economizer.
    """
    mth = "airloop.demandControlVentilationLimits"

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, [])

    return list(osstd.rule(std, "dcv_limits_cfm", (3000, 750)))


def motorizedOADamperLimits(std=None, air_loop=None, climate_zone="") -> list:
    """Returns [minimum OA flow cfm, maximum stories] beyond which motorized OA
    dampers are required.
    """
    mth = "airloop.motorizedOADamperLimits"

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, [])

    czc = osstd.climateZoneCode(climate_zone)

    if czc in osstd.rule(std, "motorized_damper_zones", ()): return [0, 999]

    return [0, 0]


def totalCoolingCapacity(air_loop=None) -> float:
    """Returns total cooling capacity of an air loop's cooling coils [W].

    Args:
        air_loop (openstudio.model.AirLoopHVAC):
            An air loop.

    Returns:
        float: Total (hard-sized or autosized) capacity.
        0.0: If invalid input (see logs).
    """
    mth = "airloop.totalCoolingCapacity"
    cl  = openstudio.model.AirLoopHVAC
    cap = 0.0

    if not isinstance(air_loop, cl):
        return oslg.mismatch("air loop", air_loop, cl, mth, CN.DBG, cap)

    for comp in _supplyComponents(air_loop):
        val = None

        if comp.to_CoilCoolingDXSingleSpeed():
            coil = comp.to_CoilCoolingDXSingleSpeed().get()
            val  = _optional(coil.ratedTotalCoolingCapacity())

            if val is None:
                val = _optional(coil.autosizedRatedTotalCoolingCapacity())
        elif comp.to_CoilCoolingDXTwoSpeed():
            coil = comp.to_CoilCoolingDXTwoSpeed().get()
            val  = _optional(coil.ratedHighSpeedTotalCoolingCapacity())

            if val is None:
                val = _optional(coil.autosizedRatedHighSpeedTotalCoolingCapacity())
        elif comp.to_CoilCoolingWater():
            coil = comp.to_CoilCoolingWater().get()
            val  = _optional(coil.autosizedDesignCoilLoad())
        else:
            continue

        if val is None:
            oslg.log(CN.WRN, "%s: unknown capacity (%s)" % (comp.nameString(), mth))
        else:
            cap += val

    return cap


def singleZoneControlsNumStages(std=None, air_loop=None, climate_zone="") -> int:
    """Returns the number of cooling stages of single zone DX systems."""
    mth = "airloop.singleZoneControlsNumStages"

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, 1)

    lim = osstd.rule(std, "single_zone_two_stage_btu_per_hr", 65000)
    cap = osstd.convert(totalCoolingCapacity(air_loop), "W", "Btu/hr")

    if cap and cap >= lim: return 2

    return 1


def isVAV(air_loop=None) -> bool:
    """Confirms if an air loop holds a variable volume supply fan."""
    mth = "airloop.isVAV"
    cl  = openstudio.model.AirLoopHVAC

    if not isinstance(air_loop, cl):
        return oslg.mismatch("air loop", air_loop, cl, mth, CN.DBG, False)

    for comp in _supplyComponents(air_loop):
        if comp.to_FanVariableVolume(): return True

        if comp.to_FanSystemModel():
            fan = comp.to_FanSystemModel().get()
            if fan.speedControlMethod() == "Continuous": return True

    return False


def isMultizoneVAV(air_loop=None) -> bool:
    """Confirms if an air loop is a VAV system serving more than 1 zone."""
    if not isVAV(air_loop): return False

    return len(air_loop.thermalZones()) > 1


def supplyAirTemperatureResetRequired(std=None, air_loop=None, climate_zone="") -> bool:
    """Confirms if supply air temperature reset is required (90.1 6.5.3.4).

    Only multizone VAV systems are concerned. Exempted climate zones are
    humid ones (Exception 1): all others require a reset, including
    unrecognized climate zones.

    Args:
        std (osstd.Standard):
            A rule configuration.
        air_loop (openstudio.model.AirLoopHVAC):
            An air loop.
        climate_zone (str):
            ASHRAE 169 climate zone, e.g. "ASHRAE 169-2013-5A".

    Returns:
        bool: Whether SAT reset is required.
        False: If invalid inputs (see logs).
    """
    mth = "airloop.supplyAirTemperatureResetRequired"

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, False)

    if not isMultizoneVAV(air_loop): return False

    czc = osstd.climateZoneCode(climate_zone)

    if czc in osstd.rule(std, "sat_reset_exempt_zones", ()):
        oslg.log(CN.INF, "No SAT reset in %s (%s)" % (czc, mth))
        return False

    return True


def annualOperatingHours(air_loop=None) -> float:
    """Returns annual operating hours of an air loop, from its availability
    schedule: either always on, or hours with a value above 0 over the model
    year (schedule ruleset).

    Args:
        air_loop (openstudio.model.AirLoopHVAC):
            An air loop.

    Returns:
        float: Annual operating hours.
        0.0: If unknown, or if invalid input (see logs).
    """
    mth = "airloop.annualOperatingHours"
    cl  = openstudio.model.AirLoopHVAC
    hrs = 0.0

    if not isinstance(air_loop, cl):
        return oslg.mismatch("air loop", air_loop, cl, mth, CN.DBG, hrs)

    model = air_loop.model()
    sched = air_loop.availabilitySchedule()
    on    = model.alwaysOnDiscreteSchedule()

    if str(sched.handle()) == str(on.handle()): return 8760.0

    if sched.to_ScheduleConstant():
        if sched.to_ScheduleConstant().get().value() > 0: return 8760.0

        return hrs

    if not sched.to_ScheduleRuleset():
        oslg.log(CN.WRN, "%s: unknown hours (%s)" % (air_loop.nameString(), mth))
        return hrs

    sched = sched.to_ScheduleRuleset().get()
    yd    = model.getYearDescription()
    days  = sched.getDaySchedules(yd.makeDate(1, 1), yd.makeDate(12, 31))

    for day in days:
        prev = 0.0

        for t, val in zip(day.times(), day.values()):
            if val > 0: hrs += t.totalHours() - prev

            prev = t.totalHours()

    return hrs


def energyRecoveryVentilatorFlowLimit(std=None, air_loop=None, climate_zone="", pct_oa=0.0):
    """Returns the OA flow [cfm] above which an ERV is required, based on
    climate zone, OA fraction and annual operating hours (8000 hrs).

    Args:
        std (osstd.Standard):
            A rule configuration.
        air_loop (openstudio.model.AirLoopHVAC):
            An air loop.
        climate_zone (str):
            ASHRAE 169 climate zone, e.g. "ASHRAE 169-2013-5A".
        pct_oa (float):
            Design OA fraction (0.0 to 1.0).

    Returns:
        float: OA flow limit [cfm].
        None: If ERV is never required, or if invalid inputs (see logs).
    """
    mth = "airloop.energyRecoveryVentilatorFlowLimit"
    cl  = openstudio.model.AirLoopHVAC

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG)
    if not isinstance(air_loop, cl):
        return oslg.mismatch("air loop", air_loop, cl, mth, CN.DBG)

    try:
        pct_oa = float(pct_oa)
    except (ValueError, TypeError):
        return oslg.mismatch("pct OA", pct_oa, float, mth, CN.DBG)

    under = annualOperatingHours(air_loop) < 8000
    tpl   = osstd.rule(std, "data_template", std.template)
    crit  = dict(template=tpl, climate_zone=climate_zone, under_8000_hours=under)
    row   = osstd.findObject(std.data.get("energy_recovery", []), crit)

    if row is None:
        oslg.log(CN.WRN, "No %s ERV limits (%s)" % (climate_zone, mth))
        return None

    if pct_oa < 0.1: return None

    cfm = row.get(_erv_bins[min(int(round(pct_oa * 100, 6)) // 10 - 1, 7)])

    if cfm is None: return None

    return float(cfm)


def minimumZoneVentilationEfficiency(std=None, air_loop=None):
    """Returns the minimum zone ventilation efficiency (None if not set)."""
    mth = "airloop.minimumZoneVentilationEfficiency"

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG)

    return osstd.rule(std, "min_zone_ventilation_efficiency")


def spaceOutdoorAirflowRate(space=None) -> float:
    """Returns a space's design OA flow [m3/s], from its (or its space type's)
    DesignSpecificationOutdoorAir. Zone multipliers are not considered.

    Args:
        space (openstudio.model.Space):
            A space.

    Returns:
        float: OA flow rate.
        0.0: If no OA requirement, or if invalid input (see logs).
    """
    mth = "airloop.spaceOutdoorAirflowRate"
    cl  = openstudio.model.Space

    if not isinstance(space, cl):
        return oslg.mismatch("space", space, cl, mth, CN.DBG, 0.0)

    dsoa = space.designSpecificationOutdoorAir()

    if not dsoa: return 0.0

    dsoa  = dsoa.get()
    terms = [dsoa.outdoorAirFlowperPerson() * space.numberOfPeople(),
             dsoa.outdoorAirFlowperFloorArea() * space.floorArea(),
             dsoa.outdoorAirFlowRate(),
             dsoa.outdoorAirFlowAirChangesperHour() * space.volume() / 3600]

    if dsoa.outdoorAirMethod().lower() == "maximum": return max(terms)

    return sum(terms)


def zoneOutdoorAirflowRate(zone=None) -> float:
    """Returns a zone's design OA flow [m3/s] (without zone multiplier)."""
    mth = "airloop.zoneOutdoorAirflowRate"
    cl  = openstudio.model.ThermalZone

    if not isinstance(zone, cl):
        return oslg.mismatch("zone", zone, cl, mth, CN.DBG, 0.0)

    return sum(spaceOutdoorAirflowRate(space) for space in zone.spaces())


def zonePrimaryAirflowRate(zone=None) -> float:
    """Returns a zone's primary design airflow [m3/s]: the MAX of autosized
    cooling vs heating design flows, without zone multiplier. Falls back on
    hard-sized VAV terminal MAX flows if neither was autosized.

    Args:
        zone (openstudio.model.ThermalZone):
            A thermal zone.

    Returns:
        float: Primary airflow rate.
        0.0: If unknown, or if invalid input (see logs).
    """
    mth = "airloop.zonePrimaryAirflowRate"
    cl  = openstudio.model.ThermalZone
    v   = 0.0

    if not isinstance(zone, cl):
        return oslg.mismatch("zone", zone, cl, mth, CN.DBG, v)

    ide = zone.nameString()
    clg = _optional(zone.autosizedCoolingDesignAirFlowRate())
    htg = _optional(zone.autosizedHeatingDesignAirFlowRate())

    if clg is None: oslg.log(CN.WRN, "%s: no cooling flow (%s)" % (ide, mth))
    if htg is None: oslg.log(CN.WRN, "%s: no heating flow (%s)" % (ide, mth))

    if clg is not None or htg is not None:
        v = max(clg or 0.0, htg or 0.0)

        return v / zone.multiplier()

    for terminal in _vavTerminals(zone):
        val = _optional(terminal.maximumAirFlowRate())
        if val is not None: v = max(v, val)

    return v


def setMinimumDamperPosition(zone=None, position=0.0) -> bool:
    """Sets a constant minimum air flow fraction of a zone's VAV terminals.

    Args:
        zone (openstudio.model.ThermalZone):
            A thermal zone.
        position (float):
            Minimum damper position, clamped between 0 and 1.

    Returns:
        bool: Whether VAV terminal(s) were found & set.
        False: If invalid inputs (see logs).
    """
    mth = "airloop.setMinimumDamperPosition"
    cl  = openstudio.model.ThermalZone

    if not isinstance(zone, cl):
        return oslg.mismatch("zone", zone, cl, mth, CN.DBG, False)

    try:
        position = float(position)
    except (ValueError, TypeError):
        return oslg.mismatch("position", position, float, mth, CN.DBG, False)

    position  = osstd.clamp(position, 0, 1)
    terminals = _vavTerminals(zone)

    if not terminals:
        oslg.log(CN.DBG, "%s: no VAV terminals (%s)" % (zone.nameString(), mth))
        return False

    for terminal in terminals:
        if isinstance(terminal, openstudio.model.AirTerminalSingleDuctVAVReheat):
            terminal.setZoneMinimumAirFlowMethod("Constant")
        else:
            terminal.setZoneMinimumAirFlowInputMethod("Constant")

        terminal.setConstantMinimumAirFlowFraction(position)

    return True


def minimumDamperPosition(zone=None):
    """Returns the constant minimum air flow fraction of a zone's (1st) VAV
    terminal (None if missing or autosized).
    """
    mth = "airloop.minimumDamperPosition"
    cl  = openstudio.model.ThermalZone

    if not isinstance(zone, cl):
        return oslg.mismatch("zone", zone, cl, mth, CN.DBG)

    for terminal in _vavTerminals(zone):
        return _optional(terminal.constantMinimumAirFlowFraction())

    return None


def vrp(zones=[], occ_diversity=0.66):
    """Ventilation Rate Procedure (ASHRAE 62.1-2019 6.2.5), for a multizone
    system. Zone air distribution effectiveness (E_z) is set to 1.

    Zones with a null (or negative) primary airflow are logged, skipped and
    excluded from the uncorrected OA flow.

    Args:
        zones (list):
            Zone records (dicts), each with:
            - "name" (str): zone identifier.
            - "v_bz" (float): breathing zone OA flow [m3/s].
            - "v_pz" (float): primary airflow [m3/s].
            - "multiplier" (int): zone multiplier.
        occ_diversity (float):
            System occupant diversity (D).

    Returns:
        dict:
        - "zones" (dict): zone minimum damper positions, keyed by name.
        - "v_ou" (float): uncorrected system OA flow [m3/s].
        - "e_v" (float): system ventilation efficiency.
        - "v_ot" (float): system OA intake flow [m3/s].
        None: If invalid inputs (see logs).
    """
    mth = "airloop.vrp"
    res = dict(zones={}, v_ou=0.0, e_v=0.0, v_ot=0.0)

    if not isinstance(zones, list):
        return oslg.mismatch("zones", zones, list, mth, CN.DBG)

    try:
        d = float(occ_diversity)
    except (ValueError, TypeError):
        return oslg.mismatch("diversity", occ_diversity, float, mth, CN.DBG)

    for i, zone in enumerate(zones):
        if not isinstance(zone, dict):
            oslg.mismatch("zone", zone, dict, mth, CN.DBG)
            continue

        ide = zone.get("name", "zone %d" % i)

        try:
            v_bz = float(zone.get("v_bz", 0))
            v_pz = float(zone.get("v_pz", 0))
            mult = float(zone.get("multiplier", 1))
        except (ValueError, TypeError):
            oslg.invalid("%s airflows" % ide, mth, 1, CN.ERR)
            continue

        if v_pz <= 0:
            oslg.log(CN.WRN, "Skipping %s: null primary flow (%s)" % (ide, mth))
            continue

        v_oz = v_bz # / E_z (1.0)

        res["zones"][ide] = 1.5 * v_oz / v_pz
        res["v_ou"] += v_bz * mult

    res["e_v"]  = 0.75 if d >= 0.6 else 0.88 * d + 0.22
    res["v_ot"] = res["v_ou"] / res["e_v"]

    return res


def adjustMinimumVAVDamperPositions(std=None, air_loop=None) -> bool:
    """Adjusts minimum VAV damper positions (ASHRAE 62.1-2019 VRP), and caps
    design system OA intake with an EMS program (Controller:MechanicalVentilation
    requested flow vs VRP intake flow). Sizing:System design OA is hard-sized.

    Prototype Hospital & Outpatient loops following AIA 2001 ventilation
    requirements are left as is.

    Args:
        std (osstd.Standard):
            A rule configuration.
        air_loop (openstudio.model.AirLoopHVAC):
            An air loop.

    Returns:
        bool: Whether adjustment was successful (or not needed).
        False: If invalid inputs (see logs).
    """
    mth = "airloop.adjustMinimumVAVDamperPositions"
    cl  = openstudio.model.AirLoopHVAC

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, False)
    if not isinstance(air_loop, cl):
        return oslg.mismatch("air loop", air_loop, cl, mth, CN.DBG, False)

    ide = air_loop.nameString()

    for tag in _aia.get(std.building_type, ()):
        if tag in ide: return True

    ctl = _controllerOA(air_loop)

    if ctl is None:
        oslg.log(CN.WRN, "%s: no OA system (%s)" % (ide, mth))
        return False

    zones = sorted(air_loop.thermalZones(), key=lambda z: z.nameString())
    recs  = []

    for zone in zones:
        recs.append(dict(name=zone.nameString(),
                         v_bz=zoneOutdoorAirflowRate(zone),
                         v_pz=zonePrimaryAirflowRate(zone),
                         multiplier=zone.multiplier()))

    out = vrp(recs)

    if not out or not out["zones"]:
        oslg.log(CN.WRN, "%s: no valid VRP zones (%s)" % (ide, mth))
        return False

    for zone in zones:
        if zone.nameString() not in out["zones"]: continue

        setMinimumDamperPosition(zone, out["zones"][zone.nameString()])

    v_ot  = out["v_ot"]
    model = air_loop.model()
    sched = ctl.maximumFractionofOutdoorAirSchedule()
    typ   = None

    if not sched:
        sched = openstudio.model.ScheduleConstant(model)
        sched.setName("%s_MAX_OA_FRAC" % ide)
        sched.setValue(1.0)
        ctl.setMaximumFractionofOutdoorAirSchedule(sched)
        typ = "Schedule:Constant"
    else:
        sched = sched.get()

        if sched.to_ScheduleRuleset():
            sched = sched.to_ScheduleRuleset().get()
            typ   = "Schedule:Year"
        elif sched.to_ScheduleConstant():
            sched = sched.to_ScheduleConstant().get()
            typ   = "Schedule:Constant"
        elif sched.to_ScheduleCompact():
            sched = sched.to_ScheduleCompact().get()
            typ   = "Schedule:Compact"

    if typ is None:
        oslg.log(CN.ERR, "%s: unsupported OA schedule (%s)" % (ide, mth))
        return False

    ems = "EMS_%s" % ide.replace(" ", "_")

    # Requested (VRP) vs actual OA mass flows, + mixed air volume flow.
    vrp_flow = openstudio.model.EnergyManagementSystemSensor(
        model, "Air System Outdoor Air Mechanical Ventilation Requested Mass Flow Rate")
    vrp_flow.setKeyName(ide)
    vrp_flow.setName("%s_OA_VRP" % ems)

    oa_flow = openstudio.model.EnergyManagementSystemSensor(
        model, "Air System Outdoor Air Mass Flow Rate")
    oa_flow.setKeyName(ide)
    oa_flow.setName("%s_OA" % ems)

    supply = openstudio.model.EnergyManagementSystemSensor(
        model, "System Node Standard Density Volume Flow Rate")
    supply.setKeyName("%s Mixed Air Node" % ide)
    supply.setName("%s_SUPPLY_FLOW" % ems)

    actuator = openstudio.model.EnergyManagementSystemActuator(
        sched, typ, "Schedule Value")
    actuator.setName("%s_MAX_OA_FRAC" % ems)

    body  = "IF %s_OA > %s_OA_VRP,\n" % (ems, ems)
    body += "SET %s_MAX_OA_FRAC = NULL,\n" % ems
    body += "ELSE,\n"
    body += "IF %s_SUPPLY_FLOW > 0,\n" % ems
    body += "SET %s_MAX_OA_FRAC = %s / %s_SUPPLY_FLOW,\n" % (ems, v_ot, ems)
    body += "ELSE,\n"
    body += "SET %s_MAX_OA_FRAC = NULL,\n" % ems
    body += "ENDIF,\n"
    body += "ENDIF"

    program = openstudio.model.EnergyManagementSystemProgram(model)
    program.setName("%s_MAX_OA_FRAC_PROG" % ems)
    program.setBody(body)

    manager = openstudio.model.EnergyManagementSystemProgramCallingManager(model)
    manager.setName("SET_%s_MAX_OA_FRAC" % ide.replace(" ", "_"))
    manager.setCallingPoint("InsideHVACSystemIterationLoop")
    manager.addProgram(program)

    sizing = air_loop.sizingSystem()
    sizing.setDesignOutdoorAirFlowRate(v_ot)
    sizing.setSystemOutdoorAirMethod("ZoneSum")

    return True


def includesCoolingCoil(air_loop=None) -> bool:
    """Confirms if an air loop holds a cooling coil (unitary systems included)."""
    mth = "airloop.includesCoolingCoil"
    cl  = openstudio.model.AirLoopHVAC

    if not isinstance(air_loop, cl):
        return oslg.mismatch("air loop", air_loop, cl, mth, CN.DBG, False)

    for comp in _supplyComponents(air_loop):
        if comp.iddObjectType().valueName().startswith("OS_Coil_Cooling"):
            return True

    return False


def includesEvaporativeCooler(air_loop=None) -> bool:
    """Confirms if an air loop holds an evaporative cooler."""
    mth = "airloop.includesEvaporativeCooler"
    cl  = openstudio.model.AirLoopHVAC

    if not isinstance(air_loop, cl):
        return oslg.mismatch("air loop", air_loop, cl, mth, CN.DBG, False)

    for comp in air_loop.supplyComponents():
        if comp.iddObjectType().valueName().startswith("OS_EvaporativeCooler"):
            return True

    return False


def enableDemandControlVentilation(std=None, air_loop=None, climate_zone="") -> bool:
    """Enables demand control ventilation on an air loop: minimum OA is reset
    to 0 and Controller:MechanicalVentilation DCV is switched on.

    Args:
        std (osstd.Standard):
            A rule configuration.
        air_loop (openstudio.model.AirLoopHVAC):
            An air loop.
        climate_zone (str):
            ASHRAE 169 climate zone, e.g. "ASHRAE 169-2013-5A".

    Returns:
        bool: Whether DCV was enabled (False if already on).
        False: If no OA system, or if invalid inputs (see logs).
    """
    mth = "airloop.enableDemandControlVentilation"
    cl  = openstudio.model.AirLoopHVAC

    if not isinstance(std, osstd.Standard):
        return oslg.mismatch("std", std, osstd.Standard, mth, CN.DBG, False)
    if not isinstance(air_loop, cl):
        return oslg.mismatch("air loop", air_loop, cl, mth, CN.DBG, False)

    ctl = _controllerOA(air_loop)

    if ctl is None:
        oslg.log(CN.DBG, "%s: no OA system (%s)" % (air_loop.nameString(), mth))
        return False

    mv = ctl.controllerMechanicalVentilation()

    if mv.demandControlledVentilation():
        oslg.log(CN.INF, "%s: DCV already on (%s)" % (air_loop.nameString(), mth))
        return False

    ctl.setMinimumOutdoorAirFlowRate(0.0)
    mv.setDemandControlledVentilation(True)

    return True
