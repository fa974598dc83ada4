import json

import pytest

from umrah_invoice.services import InMemoryStagingBuffer, JsonFileStagingBuffer


@pytest.fixture(params=["memory", "file"])
def buffer(request, tmp_path):
    if request.param == "memory":
        return InMemoryStagingBuffer()
    return JsonFileStagingBuffer(tmp_path / "staging" / "buffer.json")


def test_add_returns_count(buffer):
    assert buffer.add({'invoiceNumber': 'INV-1', 'clientName': 'A'}) == 1
    assert buffer.add({'invoiceNumber': 'INV-2', 'clientName': 'B'}) == 2
    assert len(buffer) == 2


def test_add_upserts_by_invoice_number(buffer):
    buffer.add({'invoiceNumber': 'INV-1', 'clientName': 'A'})
    buffer.add({'invoiceNumber': 'INV-2', 'clientName': 'B'})
    assert buffer.add({'invoiceNumber': 'INV-1', 'clientName': 'A2'}) == 2

    records = buffer.get_all()
    assert [r['invoiceNumber'] for r in records] == ['INV-1', 'INV-2']
    assert records[0]['clientName'] == 'A2'
    assert buffer.get('INV-1')['clientName'] == 'A2'


def test_remove(buffer):
    buffer.add({'invoiceNumber': 'INV-1'})
    buffer.add({'invoiceNumber': 'INV-2'})
    assert buffer.remove('INV-1') == 1
    assert buffer.get('INV-1') is None
    assert buffer.remove('missing') == 1


def test_clear(buffer):
    buffer.add({'invoiceNumber': 'INV-1'})
    buffer.clear()
    assert buffer.get_all() == []
    assert len(buffer) == 0


def test_returned_records_are_copies(buffer):
    record = {'invoiceNumber': 'INV-1', 'clientName': 'A'}
    buffer.add(record)
    record['clientName'] = 'changed'
    buffer.get_all()[0]['clientName'] = 'also changed'
    assert buffer.get('INV-1')['clientName'] == 'A'


def test_file_buffer_persists_between_instances(tmp_path):
    path = tmp_path / "buffer.json"
    JsonFileStagingBuffer(path).add({'invoiceNumber': 'INV-1', 'perPaxPkr': 70212.5})
    reopened = JsonFileStagingBuffer(path)
    assert reopened.get_all() == [{'invoiceNumber': 'INV-1', 'perPaxPkr': 70212.5}]


@pytest.mark.parametrize("content", ["not json", json.dumps({"invoiceNumber": "INV-1"}), json.dumps([1, "x"])])
def test_file_buffer_ignores_bad_content(tmp_path, content):
    path = tmp_path / "buffer.json"
    path.write_text(content, encoding="utf-8")
    buffer = JsonFileStagingBuffer(path)
    assert buffer.get_all() == []
    assert buffer.add({'invoiceNumber': 'INV-2'}) == 1


def test_file_buffer_keeps_valid_entries_next_to_junk(tmp_path):
    path = tmp_path / "buffer.json"
    path.write_text(json.dumps([{'invoiceNumber': 'INV-1'}, 7, None]), encoding="utf-8")
    buffer = JsonFileStagingBuffer(path)
    assert buffer.get('INV-1') == {'invoiceNumber': 'INV-1'}
    assert buffer.remove('INV-1') == 0
