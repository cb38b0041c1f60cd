def test_index_and_health(client):
    assert client.get('/').get_json()['message'] == 'Game Lobby Backend Running!'
    assert client.get('/health').get_json()['status'] == 'healthy'


def test_register_and_login(client):
    res = client.post('/register', json={'username': 'alice'})
    assert res.status_code == 200
    data = res.get_json()
    assert data['username'] == 'alice'
    assert data['token']
    assert data['message']

    res = client.post('/login', json={'username': 'alice'})
    assert res.status_code == 200
    assert res.get_json()['token']


def test_register_errors(client):
    assert client.post('/register', json={}).status_code == 400
    assert client.post('/register', json={'username': 42}).status_code == 400
    assert client.post('/register', json={'username': 'bob'}).status_code == 200
    res = client.post('/register', json={'username': 'bob'})
    assert res.status_code == 409
    assert 'error' in res.get_json()


def test_login_errors(client):
    assert client.post('/login', json={}).status_code == 400
    assert client.post('/login', json={'username': 'ghost'}).status_code == 404


def test_protected_routes_need_token(client):
    for path in ('/session/status', '/session/results', '/session/completed-results', '/session/leaderboard'):
        res = client.get(path)
        assert res.status_code == 401
        assert res.get_json() == {'error': 'Unauthorized'}
    assert client.post('/session/join').status_code == 401
    bad = {'Authorization': 'Bearer not-a-token'}
    assert client.post('/session/join', headers=bad).status_code == 401


def test_expired_token_rejected(flask_app, client, register):
    register('alice')
    flask_app.config['TOKEN_TTL_SEC'] = -10
    token = client.post('/login', json={'username': 'alice'}).get_json()['token']
    res = client.get('/session/status', headers={'Authorization': f'Bearer {token}'})
    assert res.status_code == 401


def test_public_session_status(client, register):
    state = client.get('/session').get_json()
    assert state == {'isActive': True, 'timeLeft': 20, 'playersCount': 0}
    client.post('/session/join', headers=register('alice'))
    assert client.get('/session').get_json()['playersCount'] == 1


def test_join_pick_and_status(client, register):
    headers = register('alice')
    res = client.post('/session/join', headers=headers)
    assert res.status_code == 200
    assert 'message' in res.get_json()

    res = client.post('/session/join', headers=headers)
    assert res.status_code == 400
    assert 'error' in res.get_json()

    res = client.post('/session/pick', headers=headers, json={'pick': 6})
    assert res.status_code == 200

    status = client.get('/session/status', headers=headers).get_json()
    assert status['isActive'] is True
    assert status['hasJoined'] is True
    assert status['hasPicked'] is True
    assert status['pick'] == 6
    assert status['players'] == ['alice']
    assert status['nextSessionStart'] is None


def test_pick_validation(client, register):
    headers = register('alice')
    # not joined yet
    res = client.post('/session/pick', headers=headers, json={'pick': 5})
    assert res.status_code == 400
    client.post('/session/join', headers=headers)
    for bad in (0, 11, '5', None, 2.5):
        res = client.post('/session/pick', headers=headers, json={'pick': bad})
        assert res.status_code == 400
    assert client.post('/session/pick', headers=headers).status_code == 400
    assert client.get('/session/status', headers=headers).get_json()['hasPicked'] is False

    assert client.post('/session/pick', headers=headers, json={'pick': 10}).status_code == 200
    res = client.post('/session/pick', headers=headers, json={'pick': 1})
    assert res.status_code == 400
    assert client.get('/session/status', headers=headers).get_json()['pick'] == 10


def test_leave_is_idempotent(client, register):
    headers = register('alice')
    assert client.post('/session/leave', headers=headers).status_code == 200
    client.post('/session/join', headers=headers)
    client.post('/session/pick', headers=headers, json={'pick': 3})
    assert client.post('/session/leave', headers=headers).status_code == 200
    assert client.post('/session/leave', headers=headers).status_code == 200
    status = client.get('/session/status', headers=headers).get_json()
    assert status['hasJoined'] is False
    assert client.post('/session/join', headers=headers).status_code == 200


def test_results_only_while_open(client, engine, register):
    headers = register('alice')
    client.post('/session/join', headers=headers)
    res = client.get('/session/results', headers=headers)
    assert res.status_code == 200
    assert res.get_json()['winningNumber'] is None
    assert res.get_json()['players'] == [{'username': 'alice', 'pick': None}]

    engine.scheduler.advance(20)
    assert client.get('/session/results', headers=headers).status_code == 400


def test_completed_results_before_any_round(client, register):
    headers = register('alice')
    res = client.get('/session/completed-results', headers=headers)
    assert res.status_code == 400
    assert 'error' in res.get_json()


def test_full_round_credits_winners(client, engine, register):
    engine.draw = lambda: 7
    a = register('A')
    b = register('B')
    c = register('C')
    for headers in (a, b, c):
        assert client.post('/session/join', headers=headers).status_code == 200
    client.post('/session/pick', headers=a, json={'pick': 7})
    client.post('/session/pick', headers=b, json={'pick': 7})

    engine.scheduler.advance(20)

    status = client.get('/session/status', headers=c).get_json()
    assert status['isActive'] is False
    assert status['timeLeft'] == 0
    assert status['nextSessionStart'] is not None
    assert client.post('/session/join', headers=c).status_code == 400

    results = client.get('/session/completed-results', headers=a).get_json()
    assert results['winningNumber'] == 7
    assert [w['username'] for w in results['winners']] == ['A', 'B']
    assert len(results['players']) == 3

    board = client.get('/session/leaderboard', headers=a).get_json()['leaderboard']
    assert board[:2] == [{'username': 'A', 'wins': 1}, {'username': 'B', 'wins': 1}]
    assert {'username': 'C', 'wins': 0} in board

    history = client.get('/session/history', headers=a).get_json()['sessions']
    assert len(history) == 1
    assert history[0]['winners'] == ['A', 'B']

    # next round opens after the cooldown; completed results still available
    engine.scheduler.advance(10)
    assert client.get('/session').get_json()['isActive'] is True
    assert client.get('/session/completed-results', headers=a).get_json()['winningNumber'] == 7
    assert client.post('/session/join', headers=c).status_code == 200


def test_leaderboard_is_capped_and_sorted(flask_app, client, register):
    headers = register('viewer')
    from gamelobby import db
    from gamelobby.models import User
    with flask_app.app_context():
        for i in range(12):
            db.session.add(User(username=f'user{i:02d}', wins=i))
        db.session.commit()
    board = client.get('/session/leaderboard', headers=headers).get_json()['leaderboard']
    assert len(board) == 10
    assert board[0] == {'username': 'user11', 'wins': 11}
    assert [row['wins'] for row in board] == sorted((row['wins'] for row in board), reverse=True)


def test_history_limit_validation(client, register):
    headers = register('alice')
    assert client.get('/session/history?limit=abc', headers=headers).status_code == 400
    assert client.get('/session/history?limit=5', headers=headers).get_json() == {'sessions': []}


def test_non_object_bodies_are_rejected(client, register):
    headers = register('alice')
    client.post('/session/join', headers=headers)
    for body in ([5], '5', 5):
        res = client.post('/session/pick', headers=headers, json=body)
        assert res.status_code == 400
        assert 'error' in res.get_json()
    assert client.get('/session/status', headers=headers).get_json()['hasPicked'] is False

    assert client.post('/register', json=['bob']).status_code == 400
    assert client.post('/register', json='bob').status_code == 400
    assert client.post('/login', json=['alice']).status_code == 400


def test_overlong_username_rejected(client):
    res = client.post('/register', json={'username': 'x' * 65})
    assert res.status_code == 400
    assert 'error' in res.get_json()
    assert client.post('/register', json={'username': 'x' * 64}).status_code == 200
    assert client.post('/login', json={'username': 'x' * 65}).status_code == 400


def test_cli_commands_do_not_open_a_round(app_factory):
    flask_app = app_factory(SESSION_AUTOSTART=False)
    engine = flask_app.extensions['session_engine']
    result = flask_app.test_cli_runner().invoke(args=['db-reset'])
    assert result.exit_code == 0
    assert engine.state.value == 'pending'
    assert engine.scheduler.pending() == []

    # the first served request opens the round
    state = flask_app.test_client().get('/session').get_json()
    assert state['isActive'] is True
    assert len(engine.scheduler.pending()) == 1


def test_history_reports_store_failure(flask_app, client, register):
    headers = register('alice')
    from gamelobby import db
    from gamelobby.models import CompletedSession
    with flask_app.app_context():
        CompletedSession.__table__.drop(db.engine)
    res = client.get('/session/history', headers=headers)
    assert res.status_code == 500
    assert res.get_json() == {'error': 'Failed to fetch session history'}
