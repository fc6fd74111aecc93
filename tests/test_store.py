import re
import pytest
from entstore import Entity
from entstore.errors import NoCandidateError, NotConfiguredError


def add(store, **fields):
    return store.save(Entity('person', fields=fields))


def test_save_inserts_then_updates(sqlite_store):
    ann = add(sqlite_store, name='Ann')
    assert ann['id'] is not None
    assert ann.name == 'person'
    assert ann['lastName'] is None

    ann['lastName'] = 'Lee'
    assert sqlite_store.save(ann) is ann
    loaded = sqlite_store.load(Entity('person'), {'id': ann['id']})
    assert loaded['lastName'] == 'Lee'
    assert loaded['name'] == 'Ann'


def test_save_sends_update_by_row_reference(fake_store, backend):
    saved = fake_store.save(Entity('person', fields={'name': 'Ann'}))
    assert backend.db.calls[-1] == ('insert_one', 'person', {'name': 'Ann'})
    assert saved['id'] == 1

    saved['lastName'] = 'Lee'
    fake_store.save(saved)
    assert backend.db.calls[-1] == ('update', 'person', {'name': 'Ann', 'last_name': 'Lee'}, 1)


def test_update_missing_row(sqlite_store):
    with pytest.raises(NoCandidateError):
        sqlite_store.save(Entity('person', fields={'id': 999, 'name': 'Ghost'}))


def test_load(sqlite_store):
    add(sqlite_store, name='Ann', lastName='Lee', age=30)
    add(sqlite_store, name='Bo', age=40)
    assert sqlite_store.load(Entity('person'), {'lastName': 'Lee'})['name'] == 'Ann'
    assert sqlite_store.load(Entity('person'), {'lastName': None})['name'] == 'Bo'
    assert sqlite_store.load(Entity('person'), {'name': 'Nobody'}) is None


def test_list_filters_sort_and_paging(sqlite_store):
    for i in range(25):
        add(sqlite_store, name=f'p{i}', age=i)
    assert len(sqlite_store.list(Entity('person'))) == 20
    page = sqlite_store.list(Entity('person'), {'sort$': {'age': -1}, 'limit$': 3, 'skip$': 2})
    assert [p['age'] for p in page] == [22, 21, 20]
    assert [p['name'] for p in sqlite_store.list(Entity('person'), {'age': 7})] == ['p7']


def test_list_ids(sqlite_store):
    ids = [add(sqlite_store, name=f'p{i}')['id'] for i in range(25)]
    wanted = ids[:22]
    found = sqlite_store.list(Entity('person'), {'ids': wanted})
    assert sorted(p['id'] for p in found) == wanted


def test_list_distinct(sqlite_store):
    add(sqlite_store, name='Ann', age=1)
    add(sqlite_store, name='Ann', age=2)
    add(sqlite_store, name='Bo', age=3)
    rows = sqlite_store.list(Entity('person'), {'distinct$': ['name'], 'sort$': {'name': 1}})
    assert [dict(r) for r in rows] == [{'name': 'Ann'}, {'name': 'Bo'}]


def test_list_raw(sqlite_store):
    add(sqlite_store, name='Ann', lastName='Lee')
    add(sqlite_store, name='Bo', lastName='Lee')
    rows = sqlite_store.list_raw(Entity('person'), 'SELECT * FROM person WHERE last_name = ? AND name <> ?', 'Lee', 'Bo')
    assert [r['name'] for r in rows] == ['Ann']
    assert rows[0]['lastName'] == 'Lee'


def test_list_df(sqlite_store):
    add(sqlite_store, name='Ann', lastName='Lee', age=30)
    df = sqlite_store.list_df(Entity('person'))
    assert list(df.columns) == ['id', 'name', 'lastName', 'age']
    assert df.loc[0, 'name'] == 'Ann'


def test_remove_by_id(sqlite_store):
    ann = add(sqlite_store, name='Ann')
    assert sqlite_store.remove(Entity('person'), {'id': ann['id']}) == 1
    with pytest.raises(NoCandidateError):
        sqlite_store.remove(Entity('person'), {'id': ann['id']})


def test_remove_all(sqlite_store):
    add(sqlite_store, name='Ann')
    add(sqlite_store, name='Ann')
    add(sqlite_store, name='Bo')
    assert sqlite_store.remove(Entity('person'), {'name': 'Ann', 'all$': True}) == 2
    with pytest.raises(NoCandidateError) as exc:
        sqlite_store.remove(Entity('person'), {'name': 'Ann', 'all$': True})
    assert exc.value.critical is False
    assert len(sqlite_store.list(Entity('person'))) == 1


def test_remove_first_match(sqlite_store):
    add(sqlite_store, name='Ann')
    add(sqlite_store, name='Ann')
    assert sqlite_store.remove(Entity('person'), {'name': 'Ann'}) == 1
    assert len(sqlite_store.list(Entity('person'), {'name': 'Ann'})) == 1
    with pytest.raises(NoCandidateError):
        sqlite_store.remove(Entity('person'), {'name': 'Nobody'})


def test_regex_filter_statement(fake_store, backend):
    fake_store.list(Entity('person'), {'name': re.compile('^a', re.I)})
    assert backend.db.calls[-1] == ('query', 'SELECT * FROM person WHERE name ~* :name LIMIT 20', {'name': '^a'})


def test_closed_store_fails_fast(sqlite_store):
    sqlite_store.close()
    with pytest.raises(NotConfiguredError):
        sqlite_store.load(Entity('person'), {})
    sqlite_store.configure()
    assert sqlite_store.list(Entity('person')) == []


def test_regex_filters_on_sqlite(sqlite_store):
    for name in ('Ann', 'ann', 'Bob'):
        add(sqlite_store, name=name)
    found = sqlite_store.list(Entity('person'), {'name': re.compile('^A'), 'sort$': {'id': 1}})
    assert [e['name'] for e in found] == ['Ann']
    found = sqlite_store.list(Entity('person'), {'name': re.compile('^a', re.I), 'sort$': {'id': 1}})
    assert [e['name'] for e in found] == ['Ann', 'ann']
    assert sqlite_store.list(Entity('person'), {'lastName': re.compile('.')}) == []


def test_list_empty_ids(fake_store, backend):
    assert fake_store.list(Entity('person'), {'ids': []}) == []
    assert all(call[0] != 'query' for call in backend.db.calls)
