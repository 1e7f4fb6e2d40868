from unittest import TestCase, main

import numpy as np

from tilegame.core.gameboard import ILLEGAL_MOVE, MAX_EXPONENT, GameBoard, legal_actions_mask
from tilegame.core.gamemove import Action, ActionKind, illegal_actions, legal_actions


class TestGameMove(TestCase):
    def test_illegal_actions(self):
        """
        Test if illegal actions are correctly identified.
        """
        board = GameBoard([1, 0, 0, 0, 1] + [0] * 11)
        illegal = illegal_actions(board)
        self.assertEqual(set(illegal), {3})

    def test_legal_actions(self):
        """
        Test if legal actions are correctly identified, in canonical order.
        """
        board = GameBoard([1, 0, 0, 0, 1] + [0] * 11)
        self.assertEqual(legal_actions(board), [0, 1, 2])

    def test_mask_agrees_with_slide(self):
        """
        Test that the mask marks exactly the slides that change the board.
        """
        generator = np.random.default_rng(7)
        for _ in range(100):
            cells = generator.integers(0, 4, size=16)
            board = GameBoard(cells)
            mask = legal_actions_mask(board.grid)
            for opcode in range(4):
                self.assertEqual(mask[opcode], board.copy().slide(opcode) != ILLEGAL_MOVE)

    def test_stuck_board_has_no_legal_action(self):
        """
        Test that a full board without merges has no legal slide.
        """
        board = GameBoard([1, 2, 1, 2, 2, 1, 2, 1, 1, 2, 1, 2, 2, 1, 2, 1])
        self.assertEqual(legal_actions(board), [])

    def test_largest_tiles_give_no_merge(self):
        """
        Test that two adjacent tiles at the largest exponent do not make a slide legal.
        """
        board = GameBoard([MAX_EXPONENT, MAX_EXPONENT, 0, 0] + [0] * 12)
        self.assertEqual(legal_actions_mask(board.grid), (False, True, True, False))
        self.assertEqual(illegal_actions(board), [0, 3])


class TestAction(TestCase):
    def test_slide_action(self):
        """
        Test that a slide action applies its direction.
        """
        action = Action.slide(2)
        board = GameBoard([1] + [0] * 15)
        self.assertIs(action.kind, ActionKind.SLIDE)
        self.assertEqual(action.apply(board), 0)
        self.assertEqual(board[12], 1)
        self.assertEqual(str(action), '#D')

    def test_place_action(self):
        """
        Test that a place action puts its tile and rejects occupied cells.
        """
        action = Action.place(10, 2)
        board = GameBoard()
        self.assertEqual(action.apply(board), 0)
        self.assertEqual(board[10], 2)
        self.assertEqual(action.apply(board), ILLEGAL_MOVE)
        self.assertEqual(str(action), 'A4')

    def test_actions_are_values(self):
        """
        Test that equal actions compare equal.
        """
        self.assertEqual(Action.slide(1), Action.slide(5))
        self.assertNotEqual(Action.slide(1), Action.place(1, 1))


if __name__ == '__main__':
    main()
