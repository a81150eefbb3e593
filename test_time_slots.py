from services.time_slots import (DEFAULT_TIME_SLOTS, initialize_default_time_slots, get_effective_time_slot,
                                 upsert_class_time_slot, reset_class_time_slots, get_class_time_slots)
from extensions import db
from models import TimeSlot


def test_initialize_defaults_is_idempotent(app_ctx):
    first = initialize_default_time_slots()
    second = initialize_default_time_slots()
    assert len(first) == len(DEFAULT_TIME_SLOTS) == 10
    assert [s.id for s in first] == [s.id for s in second]
    assert TimeSlot.query.count() == 10


def test_effective_slot_prefers_class_then_school_then_default(app_ctx, make):
    school_id = make.school()
    class_id = make.school_class(school_id)
    initialize_default_time_slots()
    assert get_effective_time_slot(class_id, 1).start_time == '9:00'

    db.session.add(TimeSlot(slot_number=1, start_time='9:10', end_time='9:55', school_id=school_id))
    db.session.commit()
    assert get_effective_time_slot(class_id, 1).start_time == '9:10'

    upsert_class_time_slot(class_id, 1, '9:20', '10:05')
    assert get_effective_time_slot(class_id, 1).start_time == '9:20'


def test_effective_slot_missing(app_ctx, make):
    class_id = make.school_class(make.school())
    assert get_effective_time_slot(class_id, 3) is None
    assert get_effective_time_slot(9999, 1) is None


def test_upsert_updates_existing_class_slot(app_ctx, make):
    class_id = make.school_class(make.school())
    slot, created = upsert_class_time_slot(class_id, 2, '10:00', '10:45')
    assert created
    again, created = upsert_class_time_slot(class_id, 2, '10:05', '10:50')
    assert not created
    assert again.id == slot.id
    assert again.end_time == '10:50'


def test_reset_class_time_slots(app_ctx, make):
    class_id = make.school_class(make.school())
    upsert_class_time_slot(class_id, 0, '8:00', '8:40')
    upsert_class_time_slot(class_id, 1, '8:50', '9:30')
    assert reset_class_time_slots(class_id) == 2
    assert get_class_time_slots(class_id) == []


def test_time_slot_endpoints(client, login, school):
    login('admin')
    response = client.get('/api/time-slots/defaults')
    assert response.status_code == 200
    assert len(response.get_json()) == 10

    response = client.post(f'/api/class/{school.class_id}/time-slots',
                           json={'slotNumber': 1, 'startTime': '9:05', 'endTime': '9:50'})
    assert response.status_code == 201
    slot = response.get_json()

    response = client.post(f'/api/class/{school.class_id}/time-slots',
                           json={'slotNumber': 1, 'startTime': '9:10', 'endTime': '9:55'})
    assert response.status_code == 200
    assert response.get_json()['id'] == slot['id']

    response = client.get(f'/api/class/{school.class_id}/time-slots/1/effective')
    assert response.get_json()['startTime'] == '9:10'

    response = client.put(f"/api/class-time-slots/{slot['id']}", json={'endTime': '9:05'})
    assert response.status_code == 400

    response = client.post(f'/api/class/{school.class_id}/time-slots/reset')
    assert response.status_code == 200
    response = client.get(f'/api/class/{school.class_id}/time-slots/1/effective')
    assert response.get_json()['startTime'] == '9:00'


def test_class_time_slot_rejects_reversed_times(client, login, school):
    login('admin')
    response = client.post(f'/api/class/{school.class_id}/time-slots',
                           json={'slotNumber': 1, 'startTime': '10:00', 'endTime': '9:00'})
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Validation failed'
    assert 'endTime' in response.get_json()['errors']


def test_default_slots_only_editable_by_super_admin(client, login, school):
    login('admin')
    slot_id = client.get('/api/time-slots/defaults').get_json()[0]['id']
    assert client.put(f'/api/time-slots/{slot_id}', json={'startTime': '7:55'}).status_code == 403

    login('root')
    response = client.put(f'/api/time-slots/{slot_id}', json={'startTime': '7:55'})
    assert response.status_code == 200
    assert response.get_json()['startTime'] == '7:55'
