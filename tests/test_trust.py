import threading

import pytest

from guardnet.app.trust import (
    SessionTrustStore, TrustMatcher, base_domain, is_statically_trusted, should_skip_url,
)


def test_static_allow_list():
    assert is_statically_trusted('www.google.com')
    assert is_statically_trusted('accounts.google.com')
    assert is_statically_trusted('university.edu')
    assert is_statically_trusted('dinas.go.id')
    assert not is_statically_trusted('notgoogle.com')
    assert not is_statically_trusted('google.com.evil.net')
    assert not is_statically_trusted('')


def test_session_trust_is_reflexive_under_www():
    matcher = TrustMatcher(SessionTrustStore(['example.com']))
    assert matcher.is_trusted('www.example.com')
    assert matcher.is_trusted('example.com')

    matcher = TrustMatcher(SessionTrustStore(['www.example.com']))
    assert matcher.is_trusted('example.com')
    assert not matcher.is_trusted('example.org')


def test_session_trust_covers_subdomains():
    matcher = TrustMatcher()
    assert not matcher.is_trusted('forum.kaskus.co.id')
    matcher.trust_domain_for_session('Kaskus.co.id')
    assert matcher.is_trusted('forum.kaskus.co.id')
    assert matcher.list_session_trust() == ['kaskus.co.id']


def test_session_store_add_clear_list():
    store = SessionTrustStore()
    store.add('b.com')
    store.add('a.com')
    store.add('a.com')
    assert store.list() == ['a.com', 'b.com']
    assert len(store) == 2
    assert 'a.com' in store
    store.clear()
    assert store.list() == []
    with pytest.raises(ValueError):
        store.add('  ')


def test_base_domain():
    assert base_domain('https://shop.kaskus.co.id/x') == 'kaskus.co.id'
    assert base_domain('https://www.example.com') == 'example.com'
    assert base_domain('https://a.b.example.com/') == 'example.com'
    assert base_domain('https://www.a.example.com/') == 'a.example.com'
    assert base_domain('http://localhost:8080/') == 'localhost'
    assert base_domain('not a url') is None


def test_should_skip_url():
    matcher = TrustMatcher()
    assert should_skip_url('', matcher)
    assert should_skip_url('chrome://extensions', matcher)
    assert should_skip_url('https://www.google.com/search?q=x', matcher)
    assert should_skip_url('http://example.com/?guardnet-verified=1', matcher)
    assert not should_skip_url('http://example.com/login', matcher)


def test_session_store_concurrent_writers_and_readers():
    store = SessionTrustStore()
    matcher = TrustMatcher(store)

    def writer(prefix):
        for i in range(200):
            store.add(f'{prefix}{i}.example.com')

    def reader():
        for _ in range(200):
            matcher.is_trusted('a5.example.com')
            len(store)

    threads = [threading.Thread(target=writer, args=(p,)) for p in 'ab']
    threads.append(threading.Thread(target=reader))
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 400
    assert 'b199.example.com' in store
    assert matcher.is_trusted('www.a5.example.com')
