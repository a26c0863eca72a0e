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
import unittest
import openstudio
from oslg import oslg
from src.osstd import osstd

DBG  = osstd.CN.DBG
INF  = osstd.CN.INF
WRN  = osstd.CN.WRN
ERR  = osstd.CN.ERR
FTL  = osstd.CN.FTL
TOL  = osstd.CN.TOL

class TestOSstdModuleMethods(unittest.TestCase):
    def test00_oslg_constants(self):
        self.assertEqual(DBG, 1)
        self.assertEqual(INF, 2)
        self.assertEqual(WRN, 3)
        self.assertEqual(ERR, 4)
        self.assertEqual(FTL, 5)
        self.assertEqual(osstd.CN.XCEL, "Xcel Energy CO EDA")

    def test01_osm_instantiation(self):
        model = openstudio.model.Model()
        self.assertTrue(isinstance(model, openstudio.model.Model))
        del model

    def test02_templates(self):
        self.assertEqual(len(osstd.templates()), 3)
        self.assertTrue("90.1-2016" in osstd.templates())
        self.assertTrue("90.1-2019" in osstd.templates())
        self.assertTrue("90.1-PRM-2019" in osstd.templates())

    def test03_clamp(self):
        self.assertAlmostEqual(osstd.clamp(0.5, 0, 1), 0.5, places=2)
        self.assertAlmostEqual(osstd.clamp(-1, 0, 1), 0.0, places=2)
        self.assertAlmostEqual(osstd.clamp(2.5, 0, 1), 1.0, places=2)
        self.assertAlmostEqual(osstd.clamp("0.3", 0, 1), 0.3, places=2)
        self.assertAlmostEqual(osstd.clamp("x", 0, 1), 0.0, places=2)
        self.assertAlmostEqual(osstd.clamp("x", "y", 1), 1.0, places=2)
        self.assertAlmostEqual(osstd.clamp(0.7, "y", 1), 0.7, places=2)

    def test04_convert(self):
        o = oslg
        self.assertEqual(o.status(), 0)
        self.assertEqual(o.reset(DBG), DBG)
        self.assertEqual(o.level(), DBG)

        self.assertAlmostEqual(osstd.convert(1, "m^3/s", "cfm"), 2118.88, places=1)
        self.assertAlmostEqual(osstd.convert(20000, "ft^2", "m^2"), 1858.06, places=1)
        self.assertAlmostEqual(osstd.convert(105, "F", "C"), 40.56, places=2)
        self.assertFalse(o.logs())

        self.assertEqual(osstd.convert(1, "m^3/s", "bananas"), None)
        self.assertEqual(o.status(), ERR)
        self.assertEqual(len(o.logs()), 1)
        self.assertTrue("bananas" in o.logs()[0]["message"])
        self.assertEqual(o.clean(), DBG)

        self.assertEqual(osstd.convert("x", "m^3/s", "cfm"), None)
        self.assertEqual(o.status(), DBG)
        self.assertEqual(len(o.logs()), 1)
        self.assertTrue("expecting" in o.logs()[0]["message"])
        self.assertEqual(o.clean(), DBG)

    def test05_climate_zones(self):
        self.assertEqual(osstd.climateZoneCode("ASHRAE 169-2013-5A"), "5A")
        self.assertEqual(osstd.climateZoneCode("ASHRAE 169-2006-0B"), "0B")
        self.assertEqual(osstd.climateZoneCode("ASHRAE 169-2013-8"), "8")
        self.assertEqual(osstd.climateZoneCode("ASHRAE 169-2013-9Z"), "")
        self.assertEqual(osstd.climateZoneCode("CEC T24-CEC1"), "")
        self.assertEqual(osstd.climateZoneCode(""), "")

    def test06_standards_data(self):
        o = oslg
        self.assertEqual(o.status(), 0)
        self.assertEqual(o.reset(DBG), DBG)

        data = osstd.loadStandardsData()
        self.assertFalse(o.logs())
        self.assertTrue("economizers" in data)
        self.assertTrue("energy_recovery" in data)
        self.assertTrue("prototype_database" in data)
        self.assertTrue("prototype_inputs" in data)
        self.assertTrue(isinstance(data["economizers"], list))
        self.assertEqual(len(data["prototype_database"]), 16)

        # Missing folder.
        self.assertEqual(osstd.loadStandardsData("/not/a/folder"), {})
        self.assertEqual(o.status(), ERR)
        self.assertEqual(len(o.logs()), 1)
        self.assertEqual(o.clean(), DBG)

        # Missing user data file.
        self.assertEqual(osstd.loadUserData("/not/a/file.csv"), [])
        self.assertEqual(o.status(), ERR)
        self.assertEqual(o.clean(), DBG)

    def test07_find_objects(self):
        o = oslg
        self.assertEqual(o.status(), 0)
        self.assertEqual(o.reset(DBG), DBG)

        data  = osstd.loadStandardsData()
        table = data["economizers"]
        crit  = dict(template="90.1-2019", climate_zone="ASHRAE 169-2013-5A")

        rows = osstd.findObjects(table, crit)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["fixed_dry_bulb_high_limit_shutoff_temp"], 70)

        row = osstd.findObject(table, crit)
        self.assertEqual(row, rows[0])
        self.assertFalse(o.logs())

        # Several matches: 1st one is kept.
        row = osstd.findObject(table, dict(template="90.1-2019"))
        self.assertTrue(row)
        self.assertEqual(o.status(), WRN)
        self.assertEqual(len(o.logs()), 1)
        self.assertEqual(o.clean(), DBG)

        # No match.
        self.assertEqual(osstd.findObject(table, dict(template="90.1-1999")), None)
        self.assertEqual(o.status(), DBG)
        self.assertEqual(o.clean(), DBG)

        # Invalid table.
        self.assertEqual(osstd.findObjects("table", crit), [])
        self.assertEqual(o.status(), DBG)
        self.assertTrue("expecting" in o.logs()[0]["message"])
        self.assertEqual(o.clean(), DBG)

    def test08_standard_rules(self):
        o = oslg
        self.assertEqual(o.status(), 0)
        self.assertEqual(o.reset(DBG), DBG)

        std = osstd.standard("90.1-PRM-2019", "Hospital")
        self.assertTrue(isinstance(std, osstd.Standard))
        self.assertEqual(std.template, "90.1-PRM-2019")
        self.assertEqual(std.building_type, "Hospital")
        self.assertTrue("economizers" in std.data)
        self.assertFalse(o.logs())

        # Rules are inherited from base templates.
        self.assertEqual(osstd.rule(std, "srr_limit"), 3.0)
        self.assertEqual(tuple(osstd.rule(std, "dcv_limits_cfm")), (3000, 750))
        self.assertEqual(osstd.rule(std, "data_template"), "90.1-2019")
        self.assertAlmostEqual(osstd.rule(std, "min_zone_ventilation_efficiency"), 0.6, places=2)
        self.assertEqual(osstd.rule(std, "unknown_rule"), None)
        self.assertEqual(osstd.rule(std, "unknown_rule", 42), 42)

        std16 = osstd.standard("90.1-2016", data={})
        self.assertEqual(osstd.rule(std16, "dcv_limits_cfm"), None)
        self.assertEqual(osstd.rule(std16, "data_template"), "90.1-2016")
        self.assertFalse(o.logs())

        # Configurations are immutable.
        with self.assertRaises(Exception):
            std.template = "90.1-2016"

        # Unknown template.
        self.assertEqual(osstd.standard("90.1-1999"), None)
        self.assertEqual(o.status(), ERR)
        self.assertEqual(len(o.logs()), 1)
        self.assertEqual(o.clean(), DBG)

        self.assertEqual(osstd.rule("std", "srr_limit", 0), 0)
        self.assertEqual(o.status(), DBG)
        self.assertEqual(o.clean(), DBG)

        # Template without rules: defaults, with a warning.
        std13 = osstd.Standard("90.1-2013", "SmallOffice", {})
        self.assertEqual(osstd.rule(std13, "dcv_limits_cfm"), None)
        self.assertEqual(osstd.rule(std13, "srr_limit", 5.0), 5.0)
        self.assertEqual(o.status(), WRN)
        self.assertEqual(len(o.logs()), 2)
        self.assertTrue("90.1-2013" in o.logs()[0]["message"])
        self.assertEqual(o.clean(), DBG)

    def test09_schedule_min_max(self):
        o = oslg
        self.assertEqual(o.status(), 0)
        self.assertEqual(o.reset(DBG), DBG)

        model = openstudio.model.Model()

        sched = openstudio.model.ScheduleConstant(model)
        sched.setValue(5.0)
        res = osstd.scheduleMinMax(sched)
        self.assertAlmostEqual(res["min"], 5.0, places=2)
        self.assertAlmostEqual(res["max"], 5.0, places=2)

        sched = openstudio.model.ScheduleRuleset(model, 21.0)
        rule  = openstudio.model.ScheduleRule(sched)
        rule.daySchedule().addValue(openstudio.Time(0, 24, 0, 0), 18.0)
        res = osstd.scheduleMinMax(sched)
        self.assertAlmostEqual(res["min"], 18.0, places=2)
        self.assertAlmostEqual(res["max"], 21.0, places=2)
        self.assertFalse(o.logs())

        res = osstd.scheduleMinMax("schedule")
        self.assertEqual(res["min"], None)
        self.assertEqual(res["max"], None)
        self.assertEqual(o.status(), DBG)
        self.assertEqual(len(o.logs()), 1)
        self.assertEqual(o.clean(), DBG)
        del model

    def test10_zone_setpoints(self):
        o = oslg
        self.assertEqual(o.status(), 0)
        self.assertEqual(o.reset(DBG), DBG)

        model = openstudio.model.Model()
        zone  = openstudio.model.ThermalZone(model)
        res   = osstd.zoneSetpoints(zone)
        self.assertEqual(res["heating"], None)
        self.assertEqual(res["cooling"], None)

        tstat = openstudio.model.ThermostatSetpointDualSetpoint(model)
        htg   = openstudio.model.ScheduleRuleset(model, 21.0)
        clg   = openstudio.model.ScheduleRuleset(model, 24.0)
        self.assertTrue(tstat.setHeatingSetpointTemperatureSchedule(htg))
        self.assertTrue(tstat.setCoolingSetpointTemperatureSchedule(clg))
        self.assertTrue(zone.setThermostatSetpointDualSetpoint(tstat))

        res = osstd.zoneSetpoints(zone)
        self.assertAlmostEqual(res["heating"], 21.0, places=2)
        self.assertAlmostEqual(res["cooling"], 24.0, places=2)
        self.assertFalse(o.logs())

        res = osstd.zoneSetpoints(model)
        self.assertEqual(res["heating"], None)
        self.assertEqual(o.status(), DBG)
        self.assertEqual(o.clean(), DBG)
        del model

if __name__ == "__main__":
    unittest.main()
