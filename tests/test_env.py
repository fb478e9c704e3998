import itertools
import unittest

import numpy as np

from puyo_rl.env.puyo_env import PuyoEnv
from puyo_rl.game import Action, Color

R, G, B, Y = Color.RED, Color.GREEN, Color.BLUE, Color.YELLOW


def pair_cycle(*pairs):
    it = itertools.cycle(pairs)
    return lambda: next(it)


class PuyoEnvTests(unittest.TestCase):
    def test_reset_and_step_observations_fit_the_space(self):
        env = PuyoEnv()
        obs, info = env.reset(seed=3)
        self.assertTrue(env.observation_space.contains(obs))
        self.assertEqual(info["phase"], "falling")
        self.assertEqual(list(obs["piece"][2:]), [2, 2, 0])

        obs, reward, terminated, truncated, info = env.step(int(Action.NONE))
        self.assertTrue(env.observation_space.contains(obs))
        self.assertEqual(reward, 0.0)
        self.assertFalse(terminated)
        self.assertFalse(truncated)
        self.assertEqual(info["time_ms"], 100)
        env.close()

    def test_rejects_actions_outside_the_space(self):
        env = PuyoEnv()
        env.reset()
        with self.assertRaises(ValueError):
            env.step(len(Action))

    def test_stacking_one_column_terminates(self):
        env = PuyoEnv(pair_source=pair_cycle((R, G), (B, Y)))
        env.reset()
        terminated = False
        info = {}
        reward = 0.0
        for _ in range(1000):
            _, reward, terminated, truncated, info = env.step(int(Action.SOFT_DROP_ON))
            if terminated or truncated:
                break
        self.assertTrue(terminated)
        self.assertEqual(info["phase"], "game_over")
        self.assertEqual(info["pair_seq"], 7)
        self.assertEqual(reward, -1.0)

    def test_reward_counts_erased_cells(self):
        env = PuyoEnv(pair_source=pair_cycle((R, R)))
        env.reset()
        total = 0.0
        for _ in range(200):
            _, reward, terminated, truncated, _ = env.step(int(Action.SOFT_DROP_ON))
            total += reward
            if total > 0:
                break
        # Two vertical red pairs form a group of four.
        self.assertEqual(total, 4.0)

    def test_rgb_render(self):
        env = PuyoEnv(render_mode="rgb_array")
        env.reset(seed=0)
        img = env.render()
        self.assertEqual(img.shape, (14 * 12, 6 * 12, 3))
        self.assertEqual(img.dtype, np.uint8)

    def test_truncates_at_step_limit(self):
        env = PuyoEnv(max_episode_steps=3)
        env.reset()
        results = [env.step(int(Action.NONE)) for _ in range(3)]
        self.assertEqual([r[3] for r in results], [False, False, True])


if __name__ == "__main__":
    unittest.main()
