from flask import Flask, request, jsonify
from flask_cors import CORS
from models import AgentState, VoteAction
from simulator import SimulateOptions, new_seed, simulate_game
from state import RODEO_CYCLES, UnknownConfigError, get_rodeo_config, load_config, resolve_configs
from strategies.registry import UnknownStrategyError, build_default_registry
from tournament import create_agents_from_specs, run_tournament
from view import parse_game_state
from typing import Any, Dict, Optional
import random

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes
registry = build_default_registry()  # Built once at startup, passed to whoever creates strategies


def _int_field(data: Dict, key: str, default: Optional[int]) -> Optional[int]:
    """Read an integer field; raises ValueError/TypeError on junk."""
    value = data.get(key)
    if value is None:
        return default
    return int(value)


def _agent_state(raw: Any, balance: float) -> AgentState:
    raw = raw if isinstance(raw, dict) else {}
    settings = load_config()
    round_spend = float(raw.get('round_spend', 0))
    default_budget = max(0.0, balance * settings['max_round_budget_pct'] - round_spend)
    return AgentState(
        current_team=raw.get('current_team'),
        round_spend=round_spend,
        round_vote_count=int(raw.get('round_vote_count', 0)),
        round_budget_remaining=float(raw.get('round_budget_remaining', default_budget)),
        games_played=int(raw.get('games_played', 0)),
        votes_placed=int(raw.get('votes_placed', 0)),
        wins=int(raw.get('wins', 0)),
    )


def _decision(result) -> Dict:
    if result is None:
        return {'skip': True, 'reason': 'no_vote'}
    return result.to_dict()


def _read_decision_request(data: Dict):
    strategy = registry.create(data.get('strategy', 'default'), data.get('options') or {})
    balance = float(data.get('balance', 0))
    rng = random.Random(_int_field(data, 'seed', new_seed()))
    state = _agent_state(data.get('agent_state'), balance)
    return strategy, balance, rng, state


@app.route('/api/strategies', methods=['GET'])
def list_strategies():
    """List the registered strategies with descriptions and aliases."""
    return jsonify({'strategies': [info.to_dict() for info in registry.list_info()]})


@app.route('/api/configs', methods=['GET'])
def list_configs():
    """List the rodeo cycle presets."""
    return jsonify({'configs': [
        {
            'name': c.name,
            'number_of_teams': c.number_of_teams,
            'radius': c.hex_radius,
            'fruits_per_team': c.fruits_per_team,
            'fruits_to_win': c.fruits_to_win,
            'starting_balance': c.starting_balance,
            'initial_min_bid': c.initial_min_bid,
        } for c in RODEO_CYCLES
    ]})


@app.route('/api/decide', methods=['POST'])
def decide():
    """Compute a vote for one snapshot. Unusable snapshots are a skip, not an error."""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid JSON data'}), 400

        try:
            strategy, balance, rng, state = _read_decision_request(data)
        except UnknownStrategyError as e:
            return jsonify({'error': str(e)}), 400
        except (ValueError, TypeError):
            return jsonify({'error': 'balance, seed and agent_state fields must be numeric'}), 400

        view = parse_game_state(data.get('snapshot'))
        if view is None:
            return jsonify({'skip': True, 'reason': 'unparseable_snapshot'})

        return jsonify(_decision(strategy.compute_vote(view, balance, state, rng)))

    except Exception as e:
        return jsonify({'error': f'Failed to compute vote: {str(e)}'}), 500


@app.route('/api/counter', methods=['POST'])
def counter():
    """Decide whether to counter-bid after our vote was overridden."""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid JSON data'}), 400

        try:
            strategy, balance, rng, state = _read_decision_request(data)
            raw_vote = data.get('our_vote') or {}
            target = raw_vote.get('target')
            our_vote = VoteAction(
                direction=raw_vote['direction'],
                team=raw_vote['team'],
                amount=int(raw_vote.get('amount', 1)),
                target=tuple(target) if target else None,
            )
        except UnknownStrategyError as e:
            return jsonify({'error': str(e)}), 400
        except KeyError:
            return jsonify({'error': 'our_vote must have direction and team'}), 400
        except (ValueError, TypeError):
            return jsonify({'error': 'Invalid numeric field'}), 400

        view = parse_game_state(data.get('snapshot'))
        if view is None:
            return jsonify({'skip': True, 'reason': 'unparseable_snapshot'})

        should_counter_bid = getattr(strategy, 'should_counter_bid', None)
        if should_counter_bid is None:
            return jsonify({'skip': True, 'reason': 'no_counter_policy'})

        return jsonify(_decision(should_counter_bid(view, balance, state, our_vote, rng)))

    except Exception as e:
        return jsonify({'error': f'Failed to compute counter-bid: {str(e)}'}), 500


@app.route('/api/simulate', methods=['POST'])
def simulate():
    """Play one seeded game and return the result with its round log."""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid JSON data'}), 400

        try:
            config = get_rodeo_config(data.get('config', 'small'))
            agents = create_agents_from_specs(data.get('agents') or ['ev', 'aggressive'], registry)
            options = SimulateOptions(
                seed=_int_field(data, 'seed', None),
                max_rounds=_int_field(data, 'max_rounds', None),
                max_extensions=_int_field(data, 'max_extensions', None),
            )
        except (UnknownStrategyError, UnknownConfigError) as e:
            return jsonify({'error': str(e)}), 400
        except (ValueError, TypeError):
            return jsonify({'error': 'seed, max_rounds and max_extensions must be integers'}), 400

        result = simulate_game(agents, config, options)
        response_data = result.to_dict()
        response_data['agents'] = [
            {'name': a.name, 'strategy': a.strategy.name,
             'spent': a.total_spent, 'earned': a.total_earned}
            for a in agents
        ]
        return jsonify(response_data)

    except Exception as e:
        return jsonify({'error': f'Failed to simulate game: {str(e)}'}), 500


@app.route('/api/tournament', methods=['POST'])
def tournament():
    """Run a seeded tournament and return aggregate statistics."""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid JSON data'}), 400

        try:
            configs = resolve_configs(data.get('config', 'all'))
            agents = create_agents_from_specs(data.get('agents') or ['ev', 'aggressive'], registry)
            games = _int_field(data, 'games', None)
            options = SimulateOptions(
                seed=_int_field(data, 'seed', None),
                max_rounds=_int_field(data, 'max_rounds', None),
            )
        except (UnknownStrategyError, UnknownConfigError) as e:
            return jsonify({'error': str(e)}), 400
        except (ValueError, TypeError):
            return jsonify({'error': 'games, seed and max_rounds must be integers'}), 400

        if games is not None and games < 1:
            return jsonify({'error': 'games must be at least 1'}), 400

        results = run_tournament(agents, configs, games, options)
        return jsonify(results.to_dict())

    except Exception as e:
        return jsonify({'error': f'Failed to run tournament: {str(e)}'}), 500


if __name__ == '__main__':
    app.run(debug=True)
