import json
import unittest
from datetime import timedelta

import httpx
from pydantic import ValidationError

from medbox.core.exceptions import NotFoundError
from medbox.schemas.alert import AlertType
from medbox.schemas.box import BoxCreate, BoxUpdate
from medbox.schemas.medicine import MedicineCreate, MedicineUpdate

from tests.helpers import NOW, make_service, make_storage, run


def box_data(**overrides):
    data = {"name": "Dormitorio", "box_id": "ESP32_AA:BB", "ip_address": "192.168.1.50"}
    data.update(overrides)
    return BoxCreate(**data)


def medicine_data(**overrides):
    data = {"name": "Omeprazol", "times_per_day": 1, "total_count": 28, "schedule_time": "08:00"}
    data.update(overrides)
    return MedicineCreate(**data)


class TestBoxesAndMedicines(unittest.TestCase):
    def setUp(self):
        self.service = make_service()

    def test_create_box_defaults(self):
        box = self.service.create_box("1", box_data())

        self.assertTrue(box.is_connected)
        self.assertEqual(box.medicines, [])
        self.assertEqual(self.service.get_box(box.id).name, "Dormitorio")
        self.assertEqual([b.id for b in self.service.get_boxes("1")], [box.id])

    def test_boxes_are_scoped_per_user(self):
        mine = self.service.create_box("1", box_data())
        self.service.create_box("2", box_data(name="Otra"))

        self.assertEqual([b.id for b in self.service.get_boxes("1")], [mine.id])
        with self.assertRaises(NotFoundError):
            self.service.get_box(mine.id, user_id="2")

    def test_update_box(self):
        box = self.service.create_box("1", box_data())

        updated = self.service.update_box(box.id, BoxUpdate(name="Cocina"))

        self.assertEqual(updated.name, "Cocina")
        self.assertEqual(updated.ip_address, "192.168.1.50")
        self.assertEqual(self.service.get_box(box.id).name, "Cocina")

    def test_unknown_ids_raise_not_found(self):
        box = self.service.create_box("1", box_data())
        with self.assertRaises(NotFoundError):
            self.service.get_box("desconocida")
        with self.assertRaises(NotFoundError):
            self.service.update_box("desconocida", BoxUpdate(name="x"))
        with self.assertRaises(NotFoundError):
            self.service.add_medicine("desconocida", medicine_data())
        with self.assertRaises(NotFoundError):
            self.service.update_medicine(box.id, "desconocido", MedicineUpdate(name="x"))
        with self.assertRaises(NotFoundError):
            self.service.delete_medicine(box.id, "desconocido")

    def test_add_and_update_medicine(self):
        box = self.service.create_box("1", box_data())

        medicine = self.service.add_medicine(box.id, medicine_data())
        self.assertEqual(medicine.current_count, 28)

        updated = self.service.update_medicine(
            box.id, medicine.id, MedicineUpdate(current_count=12, schedule_time="9:00")
        )
        self.assertEqual(updated.current_count, 12)
        self.assertEqual(updated.schedule_time, "09:00")
        self.assertEqual(self.service.get_box(box.id).medicines[0].current_count, 12)

    def test_add_low_medicine_creates_low_count_alert(self):
        box = self.service.create_box("1", box_data())

        medicine = self.service.add_medicine(box.id, medicine_data(current_count=2))

        alerts = self.service.get_alerts("1")
        self.assertEqual([a.type for a in alerts], [AlertType.LOW_COUNT])
        self.assertEqual(alerts[0].medicine_id, medicine.id)
        self.assertEqual(alerts[0].box_id, box.id)

    def test_add_healthy_medicine_creates_no_alert(self):
        box = self.service.create_box("1", box_data())
        self.service.add_medicine(box.id, medicine_data(current_count=20))
        self.assertEqual(self.service.get_alerts("1"), [])

    def test_delete_medicine_cascades_alerts(self):
        box = self.service.create_box("1", box_data())
        low = self.service.add_medicine(box.id, medicine_data(current_count=1))
        other = self.service.add_medicine(box.id, medicine_data(name="Loratadina", current_count=2))

        self.service.delete_medicine(box.id, low.id)

        self.assertEqual([m.id for m in self.service.get_box(box.id).medicines], [other.id])
        self.assertEqual([a.medicine_id for a in self.service.get_alerts("1")], [other.id])

    def test_delete_box_cascades_medicines_and_alerts(self):
        box = self.service.create_box("1", box_data())
        keep = self.service.create_box("1", box_data(name="Cocina"))
        self.service.add_medicine(box.id, medicine_data(current_count=1))
        kept_medicine = self.service.add_medicine(keep.id, medicine_data(current_count=1))

        self.service.delete_box(box.id)

        self.assertEqual([b.id for b in self.service.get_boxes("1")], [keep.id])
        self.assertEqual([a.medicine_id for a in self.service.get_alerts("1")], [kept_medicine.id])
        with self.assertRaises(NotFoundError):
            self.service.delete_box(box.id)

    def test_update_schemas_reject_null_for_required_fields(self):
        for field in ("name", "times_per_day", "total_count", "current_count", "schedule_time"):
            with self.assertRaises(ValidationError):
                MedicineUpdate(**{field: None})
        for field in ("name", "box_id", "ip_address", "is_connected"):
            with self.assertRaises(ValidationError):
                BoxUpdate(**{field: None})

        self.assertIsNone(MedicineUpdate(custom_message=None).custom_message)
        self.assertIsNone(BoxUpdate(last_sync_at=None).last_sync_at)

    def test_invalid_medicine_update_keeps_stored_boxes(self):
        box = self.service.create_box("1", box_data())
        self.service.create_box("1", box_data(name="Cocina"))
        medicine = self.service.add_medicine(box.id, medicine_data())

        # Cambios sin validar, como si llegaran saltándose el esquema
        with self.assertRaises(ValidationError):
            self.service.update_medicine(box.id, medicine.id, MedicineUpdate.model_construct(name=None))

        self.assertEqual(len(self.service.get_boxes("1")), 2)
        self.assertEqual(self.service.get_box(box.id).medicines[0].name, "Omeprazol")

    def test_invalid_box_update_keeps_stored_boxes(self):
        box = self.service.create_box("1", box_data())
        self.service.create_box("1", box_data(name="Cocina"))

        with self.assertRaises(ValidationError):
            self.service.update_box(box.id, BoxUpdate.model_construct(ip_address=None))

        self.assertEqual(len(self.service.get_boxes("1")), 2)
        self.assertEqual(self.service.get_box(box.id).ip_address, "192.168.1.50")


class TestAlerts(unittest.TestCase):
    def setUp(self):
        self.service = make_service()
        self.box = self.service.create_box("1", box_data())
        self.medicine = self.service.add_medicine(
            self.box.id, medicine_data(current_count=4, schedule_time="08:00")
        )

    def test_check_medicine_times_runs_dose_tick(self):
        alerts = self.service.check_medicine_times(NOW)

        self.assertEqual([a.type for a in alerts], [AlertType.MEDICINE_TIME, AlertType.LOW_COUNT])
        self.assertEqual(self.service.get_box(self.box.id).medicines[0].current_count, 3)
        self.assertEqual(self.service.check_medicine_times(NOW), [])

    def test_manual_checks_return_only_own_alerts(self):
        other_box = self.service.create_box("2", box_data(name="Ajena"))
        foreign = self.service.add_medicine(other_box.id, medicine_data(name="Ajeno", current_count=10))

        mine = self.service.check_medicine_times(NOW, user_id="1")
        self.assertEqual({a.medicine_id for a in mine}, {self.medicine.id})

        self.service.update_medicine(other_box.id, foreign.id, MedicineUpdate(current_count=2))
        self.assertEqual(self.service.check_low_medicines(NOW, user_id="1"), [])

        # La verificación es global: el aviso del otro usuario sí se guardó
        self.assertEqual([a.medicine_name for a in self.service.get_alerts("2", now=NOW)
                          if a.type == AlertType.LOW_COUNT], ["Ajeno"])

    def test_check_low_medicines(self):
        self.service.update_medicine(self.box.id, self.medicine.id, MedicineUpdate(current_count=2))

        alerts = self.service.check_low_medicines(NOW)

        self.assertEqual([a.type for a in alerts], [AlertType.LOW_COUNT])

    def test_mark_alert_as_read_keeps_it(self):
        self.service.check_medicine_times(NOW)
        alert = self.service.get_alerts("1", now=NOW)[0]

        self.service.mark_alert_as_read(alert.id, "1")

        stored = {a.id: a for a in self.service.get_alerts("1", now=NOW)}
        self.assertIn(alert.id, stored)
        self.assertTrue(stored[alert.id].is_read)

    def test_mark_all_alerts_as_read(self):
        self.service.check_medicine_times(NOW)

        self.assertEqual(self.service.mark_all_alerts_as_read("1"), 2)
        self.assertEqual(self.service.mark_all_alerts_as_read("1"), 0)
        self.assertTrue(all(a.is_read for a in self.service.get_alerts("1", now=NOW)))

    def test_delete_alert(self):
        self.service.check_medicine_times(NOW)
        alert = self.service.get_alerts("1", now=NOW)[0]

        self.service.delete_alert(alert.id, "1")

        self.assertNotIn(alert.id, [a.id for a in self.service.get_alerts("1", now=NOW)])
        with self.assertRaises(NotFoundError):
            self.service.delete_alert(alert.id, "1")

    def test_other_user_cannot_touch_alerts(self):
        self.service.check_medicine_times(NOW)
        alert = self.service.get_alerts("1", now=NOW)[0]

        self.assertEqual(self.service.get_alerts("2", now=NOW), [])
        with self.assertRaises(NotFoundError):
            self.service.mark_alert_as_read(alert.id, "2")
        self.assertEqual(self.service.mark_all_alerts_as_read("2"), 0)

    def test_get_alerts_applies_retention(self):
        self.service.check_medicine_times(NOW)

        self.assertEqual(self.service.get_alerts("1", now=NOW + timedelta(hours=25)), [])

    def test_summary(self):
        self.service.update_medicine(self.box.id, self.medicine.id, MedicineUpdate(current_count=2))
        self.service.check_low_medicines()

        summary = self.service.get_summary("1")

        self.assertEqual(summary["total_boxes"], 1)
        self.assertEqual(summary["connected_boxes"], 1)
        self.assertEqual(summary["total_medicines"], 1)
        self.assertEqual(summary["unread_alerts"], 1)
        self.assertEqual(summary["low_stock_medicines"][0]["medicine_id"], self.medicine.id)


class TestInitialize(unittest.TestCase):
    def test_seed_runs_once(self):
        storage = make_storage()
        service = make_service(storage)

        self.assertTrue(service.initialize(seed=True, user_id="1"))
        boxes = service.get_boxes("1")
        self.assertEqual(len(boxes), 3)

        service.delete_box(boxes[0].id)
        self.assertFalse(make_service(storage).initialize(seed=True, user_id="1"))
        self.assertEqual(len(service.get_boxes("1")), 2)

    def test_without_seed_starts_empty(self):
        service = make_service()

        self.assertFalse(service.initialize(seed=False))
        self.assertEqual(service.get_boxes("1"), [])
        self.assertTrue(service.storage.contains(service.storage.keys.initialized))


class TestDeviceOperations(unittest.TestCase):
    def setUp(self):
        self.requests = []

    def service_with(self, handler):
        def recording(request):
            self.requests.append(request)
            return handler(request)

        self.service = make_service(handler=recording)
        self.box = self.service.create_box("1", box_data(is_connected=False))
        self.service.add_medicine(self.box.id, medicine_data(schedule_time="08:00,20:00", times_per_day=2))
        return self.service

    def test_sync_success_marks_connected(self):
        service = self.service_with(lambda r: httpx.Response(200, json={"status": "success", "message": "ok"}))

        result = run(service.sync_box(self.box.id, "1"))

        self.assertEqual(result.status, "success")
        box = service.get_box(self.box.id)
        self.assertTrue(box.is_connected)
        self.assertIsNotNone(box.last_sync_at)

        body = json.loads(self.requests[0].content)
        self.assertEqual(str(self.requests[0].url), "http://192.168.1.50/sync")
        self.assertEqual(body["boxId"], "ESP32_AA:BB")
        self.assertEqual(body["medicines"][0]["times"], ["08:00", "20:00"])

    def test_sync_failure_marks_disconnected(self):
        service = self.service_with(lambda r: httpx.Response(503))
        service.toggle_connection(self.box.id)

        result = run(service.sync_box(self.box.id, "1"))

        self.assertEqual(result.status, "failed")
        self.assertFalse(service.get_box(self.box.id).is_connected)

    def test_connect_box(self):
        service = self.service_with(lambda r: httpx.Response(200, json={"boxId": "ESP32_AA:BB"}))

        result = run(service.connect_box(self.box.id, "1"))

        self.assertTrue(result.success)
        self.assertIn("ESP32_AA:BB", result.message)
        self.assertTrue(service.get_box(self.box.id).is_connected)

    def test_connect_unreachable_box(self):
        def handler(request):
            raise httpx.ConnectTimeout("timeout", request=request)

        service = self.service_with(handler)
        result = run(service.connect_box(self.box.id, "1"))

        self.assertFalse(result.success)
        self.assertFalse(service.get_box(self.box.id).is_connected)

    def test_disconnect_always_ends_disconnected(self):
        service = self.service_with(lambda r: httpx.Response(500))
        service.toggle_connection(self.box.id)

        result = run(service.disconnect_box(self.box.id, "1"))

        self.assertTrue(result.success)
        self.assertFalse(result.is_connected)
        self.assertFalse(service.get_box(self.box.id).is_connected)

    def test_toggle_connection(self):
        service = self.service_with(lambda r: httpx.Response(200))

        toggled = service.toggle_connection(self.box.id, "1")
        self.assertTrue(toggled.is_connected)
        self.assertIsNotNone(toggled.last_sync_at)
        self.assertFalse(service.toggle_connection(self.box.id, "1").is_connected)

    def test_device_status(self):
        service = self.service_with(lambda r: httpx.Response(200, json={"uptime": 42}))

        result = run(service.device_status(self.box.id, "1"))

        self.assertTrue(result.success)
        self.assertEqual(result.data, {"uptime": 42})

    def test_device_calls_for_unknown_box(self):
        service = self.service_with(lambda r: httpx.Response(200))
        with self.assertRaises(NotFoundError):
            run(service.sync_box("desconocida", "1"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
